"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides a miniature Laravel project tree shared by the index, daemon
and CLI tests.
"""

import json
import logging
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local laraindex package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of laraindex modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("laraindex"):
        del sys.modules[module_name]


WEB_ROUTES = """<?php

use App\\Http\\Controllers\\DashboardController;
use App\\Http\\Controllers\\PostController;
use Illuminate\\Support\\Facades\\Route;

Route::get('/', function () {
    return view('welcome');
})->name('home');

Route::middleware(['auth'])->prefix('admin')->name('admin.')->group(function () {
    Route::get('/dashboard', [DashboardController::class, 'index'])->name('dashboard');
    Route::resource('posts', PostController::class);
});

Route::get('/about', 'PageController@about')->name('about');
"""

API_ROUTES = """<?php

use App\\Http\\Controllers\\Api\\UserController;
use Illuminate\\Support\\Facades\\Route;

Route::group(['prefix' => 'v1', 'middleware' => ['api'], 'as' => 'api.'], function () {
    Route::apiResource('users', UserController::class);
    Route::match(['get', 'post'], '/search', [UserController::class, 'search'])->name('search');
});
"""

USERS_MIGRATION = """<?php

use Illuminate\\Database\\Migrations\\Migration;
use Illuminate\\Database\\Schema\\Blueprint;
use Illuminate\\Support\\Facades\\Schema;

return new class extends Migration
{
    public function up(): void
    {
        Schema::create('users', function (Blueprint $table) {
            $table->id();
            $table->string('name');
            $table->string('email')->unique();
            $table->timestamp('email_verified_at')->nullable();
            $table->string('password');
            $table->rememberToken();
            $table->timestamps();
        });
    }

    public function down(): void
    {
        Schema::dropIfExists('users');
    }
};
"""

POSTS_MIGRATION = """<?php

return new class extends Migration
{
    public function up(): void
    {
        Schema::create('posts', function (Blueprint $table) {
            $table->id();
            $table->foreignId('user_id')->constrained();
            $table->string('title')->nullable();
            $table->text('body');
            $table->boolean('published')->default(false);
            $table->timestamps();
        });
    }
};
"""

POST_MODEL = """<?php

namespace App\\Models;

use Illuminate\\Database\\Eloquent\\Factories\\HasFactory;
use Illuminate\\Database\\Eloquent\\Model;

class Post extends Model
{
    use HasFactory;

    protected $fillable = ['title', 'body', 'user_id'];

    protected $hidden = ['secret'];

    protected $casts = [
        'title' => 'integer',
        'meta' => 'array',
    ];

    public function user()
    {
        return $this->belongsTo(User::class);
    }

    public function comments()
    {
        return $this->hasMany(\\App\\Models\\Comment::class);
    }
}
"""

USER_MODEL = """<?php

namespace App\\Models;

use Illuminate\\Foundation\\Auth\\User as Authenticatable;

class User extends Authenticatable
{
    protected $fillable = ['name', 'email', 'password'];

    protected $hidden = ['password', 'remember_token'];

    protected function casts(): array
    {
        return [
            'email_verified_at' => 'datetime',
        ];
    }

    public function posts()
    {
        return $this->hasMany(Post::class);
    }
}
"""

EN_MESSAGES = """<?php

return [
    'welcome' => 'Welcome to our app',
    'greeting' => 'Hello, :name',
    'nav' => [
        'home' => 'Home',
    ],
];
"""

FR_MESSAGES = """<?php

return [
    'welcome' => 'Bienvenue',
    'nav' => [
        'home' => 'Accueil',
    ],
];
"""

LAYOUT_VIEW = """<html>
<body>
    @include('partials.nav')
    @yield('content')
</body>
</html>
"""

WELCOME_VIEW = """@extends('layouts.app')

@section('content')
    <h1>{{ __('messages.welcome') }}</h1>
    <p>{{ $user->name }}</p>
    @lang('messages.missing')
@endsection
"""

APP_CONFIG = """<?php

return [
    'name' => env('APP_NAME', 'Laravel'),
    'custom' => [
        'feature' => true,
    ],
];
"""

STORE_POST_REQUEST = """<?php

namespace App\\Http\\Requests;

use Illuminate\\Foundation\\Http\\FormRequest;

class StorePostRequest extends FormRequest
{
    public function rules(): array
    {
        return [
            'title' => 'required|string|max:255',
            'user_id' => ['required', 'exists:accounts,id'],
            'slug' => 'requird|unique:posts',
        ];
    }
}
"""

POST_CONTROLLER = """<?php

namespace App\\Http\\Controllers;

use Illuminate\\Http\\Request;

class PostController extends Controller
{
    public function store(Request $request)
    {
        $request->validate(['body' => 'required|min:10']);

        return redirect()->route('admin.posts.index')->with('status', trans('messages.greeting'));
    }
}
"""

LARAVEL_PROJECT: dict[str, str] = {
    "artisan": "#!/usr/bin/env php\n",
    "composer.json": json.dumps({"require": {"php": "^8.1", "laravel/framework": "^10.10"}}),
    "routes/web.php": WEB_ROUTES,
    "routes/api.php": API_ROUTES,
    "database/migrations/2014_10_12_000000_create_users_table.php": USERS_MIGRATION,
    "database/migrations/2024_01_01_000000_create_posts_table.php": POSTS_MIGRATION,
    "app/Models/Post.php": POST_MODEL,
    "app/Models/User.php": USER_MODEL,
    "app/Http/Controllers/PostController.php": POST_CONTROLLER,
    "app/Http/Requests/StorePostRequest.php": STORE_POST_REQUEST,
    "lang/en/messages.php": EN_MESSAGES,
    "lang/fr/messages.php": FR_MESSAGES,
    "resources/views/layouts/app.blade.php": LAYOUT_VIEW,
    "resources/views/welcome.blade.php": WELCOME_VIEW,
    "config/app.php": APP_CONFIG,
    ".env": "APP_NAME=Laravel\n# local only\nCUSTOM_FLAG=true\n",
    "vendor/laravel/framework/src/helpers.php": "<?php\n__('vendor.only');\n",
}


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write files (project-relative path -> content) under root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Factory writing an arbitrary project tree into tmp_path/project."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        return write_tree(root, files)

    return _make


@pytest.fixture
def laravel_project(make_project: Callable[[dict[str, str]], Path]) -> Path:
    """A small but complete Laravel application."""
    return make_project(LARAVEL_PROJECT)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Each test starts from structlog defaults with no root handlers."""
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
