"""Route extraction from routes/*.php.

Line-oriented: each line is matched against the recognized declaration
shapes, first match wins. Group context (middleware, URI prefix, name prefix)
is carried across lines on a stack of open closures.

Recognized shapes (an optional static chain such as
``Route::middleware('auth')->`` may precede the verb):

- ``Route::get('uri', 'Controller@method')``
- ``Route::get('uri', [Controller::class, 'method'])``
- ``Route::resource('photos', PhotoController::class)`` / ``apiResource``
- ``Route::get('uri', function () {...})`` / ``fn () => ...``
- ``Route::get('uri', InvokableController::class)``
- ``Route::match(['get', 'post'], 'uri', <action>)``
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog

from laraindex.config.constants import (
    ALL_HTTP_METHODS,
    CONTROLLER_SUFFIX,
    RESOURCE_METHODS,
    ROUTE_NAME_WINDOW_LINES,
)
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import Route

logger = structlog.get_logger()

# Static chain before the verb: Route::middleware('auth')->prefix('x')->get(
_CHAIN = r"Route::(?:\w+\s*\([^)]*\)\s*->\s*)*"
_URI = r"(?P<q>['\"`])(?P<uri>[^'\"`]*)(?P=q)"

_VERB_ROUTE_RE = re.compile(
    _CHAIN
    + r"(?:(?P<verb>get|post|put|patch|delete|options|head|any)\s*\("
    + r"|match\s*\(\s*\[(?P<verbs>[^\]]*)\]\s*,)\s*"
    + _URI
    + r"\s*,\s*(?P<rest>.*)$"
)
_RESOURCE_RE = re.compile(
    _CHAIN
    + r"(?P<kind>resource|apiResource)\s*\(\s*"
    + _URI
    + r"\s*,\s*(?:(?P<cls>[\w\\]+)::class|['\"](?P<str>[\w\\]+)['\"])"
)

# Action shapes, matched against the text after the URI argument.
_STRING_ACTION_RE = re.compile(r"^(['\"`])(?P<controller>[^'\"`@]+)@(?P<method>[^'\"`]+)\1")
_ARRAY_ACTION_RE = re.compile(r"^\[\s*(?P<controller>[\w\\]+)::class\s*,\s*(['\"`])(?P<method>\w+)\2\s*\]")
_CLOSURE_ACTION_RE = re.compile(r"^(?:static\s+)?(?:function|fn)\b")
_INVOKABLE_ACTION_RE = re.compile(r"^(?P<controller>[\w\\]+)::class\b")

_NAME_RE = re.compile(r"->name\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*\)")
_INLINE_MIDDLEWARE_RE = re.compile(r"(?:->|::)middleware\s*\(\s*(?:['\"`]([^'\"`]+)['\"`]|\[([^\]]*)\])")

# Group line options
_GROUP_RE = re.compile(r"Route::group\s*\(|->group\s*\(")
_OPT_MIDDLEWARE_RE = re.compile(r"['\"]middleware['\"]\s*=>\s*(?:\[([^\]]*)\]|['\"]([^'\"]+)['\"])")
_OPT_PREFIX_RE = re.compile(r"['\"]prefix['\"]\s*=>\s*['\"]([^'\"]*)['\"]")
_OPT_AS_RE = re.compile(r"['\"]as['\"]\s*=>\s*['\"]([^'\"]*)['\"]")
_CHAIN_PREFIX_RE = re.compile(r"(?:->|::)prefix\s*\(\s*['\"]([^'\"]*)['\"]\s*\)")
_CHAIN_NAME_RE = re.compile(r"(?:->|::)(?:name|as)\s*\(\s*['\"]([^'\"]*)['\"]\s*\)")

_OPENS_CLOSURE_RE = re.compile(r"\b(?:function|fn)\b.*\{\s*$")
_CLOSE_MARKER = "});"


@dataclass(frozen=True)
class GroupContext:
    """Attributes inherited by routes declared inside a group closure."""

    middleware: tuple[str, ...] = ()
    prefix: str = ""
    name_prefix: str = ""


@dataclass
class _Frame:
    context: GroupContext
    is_group: bool


@dataclass
class _FileState:
    routes: list[Route] = field(default_factory=list)
    frames: list[_Frame] = field(default_factory=list)

    @property
    def context(self) -> GroupContext:
        for frame in reversed(self.frames):
            if frame.is_group:
                return frame.context
        return GroupContext()


def join_uri(prefix: str, uri: str) -> str:
    """Join a group prefix and a route URI, collapsing runs of '/'."""
    if not prefix:
        return uri
    return re.sub(r"/{2,}", "/", f"{prefix}/{uri}")


def short_controller(controller: str) -> str:
    """Class name without namespace: App\\Http\\Controllers\\UserController -> UserController."""
    return controller.strip().rsplit("\\", 1)[-1]


def _split_list(raw: str) -> list[str]:
    return [part.strip().strip("'\"`") for part in raw.split(",") if part.strip().strip("'\"`")]


def _inline_middleware(line: str) -> list[str]:
    middleware: list[str] = []
    for single, many in _INLINE_MIDDLEWARE_RE.findall(line):
        middleware.extend([single] if single else _split_list(many))
    return middleware


def _merge_group(parent: GroupContext, line: str) -> GroupContext:
    middleware = list(parent.middleware)
    for many, single in _OPT_MIDDLEWARE_RE.findall(line):
        middleware.extend(_split_list(many) if many else [single])
    middleware.extend(_inline_middleware(line))

    prefix = parent.prefix
    for segment in _OPT_PREFIX_RE.findall(line) + _CHAIN_PREFIX_RE.findall(line):
        prefix = join_uri(prefix, segment)

    name_prefix = parent.name_prefix
    for segment in _OPT_AS_RE.findall(line) + _CHAIN_NAME_RE.findall(line):
        name_prefix += segment

    return GroupContext(middleware=tuple(middleware), prefix=prefix, name_prefix=name_prefix)


def _parse_verbs(verb: str | None, verbs: str | None) -> tuple[str, ...]:
    names = [verb] if verb else _split_list(verbs or "")
    methods: list[str] = []
    for name in names:
        expanded = ALL_HTTP_METHODS if name.lower() == "any" else (name.upper(),)
        methods.extend(m for m in expanded if m not in methods)
    return tuple(methods)


def _match_route(line: str, line_no: int, file: str, ctx: GroupContext) -> Route | None:
    column = max(line.find("Route::"), 0)
    middleware = ctx.middleware + tuple(_inline_middleware(line))

    m = _VERB_ROUTE_RE.search(line)
    if m:
        methods = _parse_verbs(m.group("verb"), m.group("verbs"))
        uri = join_uri(ctx.prefix, m.group("uri"))
        rest = m.group("rest")
        base = Route(methods=methods, uri=uri, action="", file=file, line=line_no, column=column, middleware=middleware)

        if action := _STRING_ACTION_RE.match(rest):
            controller, method = action.group("controller"), action.group("method")
            return replace(
                base,
                action=f"{controller}@{method}",
                controller=short_controller(controller),
                controller_method=method,
            )
        if action := _ARRAY_ACTION_RE.match(rest):
            controller, method = action.group("controller"), action.group("method")
            return replace(
                base,
                action=f"{controller}@{method}",
                controller=short_controller(controller),
                controller_method=method,
            )
        if _CLOSURE_ACTION_RE.match(rest):
            return replace(base, action="Closure", is_closure=True)
        if action := _INVOKABLE_ACTION_RE.match(rest):
            controller = action.group("controller")
            return replace(
                base,
                action=f"{controller}@__invoke",
                controller=short_controller(controller),
                controller_method="__invoke",
            )
        return None

    m = _RESOURCE_RE.search(line)
    if m:
        controller = m.group("cls") or m.group("str")
        kind = m.group("kind")
        return Route(
            methods=RESOURCE_METHODS,
            uri=f"{join_uri(ctx.prefix, m.group('uri'))}/{{id?}}",
            action=f"{controller} ({kind})",
            file=file,
            line=line_no,
            column=column,
            controller=short_controller(controller),
            controller_method="resource",
            middleware=middleware,
        )
    return None


def _attach_name(state: _FileState, line: str, line_no: int) -> None:
    m = _NAME_RE.search(line)
    if not m or not state.routes:
        return
    last = state.routes[-1]
    if abs(line_no - last.line) <= ROUTE_NAME_WINDOW_LINES:
        state.routes[-1] = replace(last, name=state.context.name_prefix + m.group(1))


def extract_routes(content: str, file: str) -> list[Route]:
    """Extract routes from one route file, in declaration order.

    Never raises: lines that match no shape produce nothing.
    """
    state = _FileState()

    for index, line in enumerate(content.splitlines()):
        line_no = index + 1
        stripped = line.strip()

        if _GROUP_RE.search(line):
            merged = _merge_group(state.context, line)
            # ->group(base_path('routes/x.php')); opens no closure
            if not stripped.endswith(";"):
                state.frames.append(_Frame(merged, is_group=True))
            continue

        if stripped == _CLOSE_MARKER and state.frames:
            state.frames.pop()
            continue
        # })->name('home'); closes a route closure, never a group
        if stripped.startswith("})") and state.frames and not state.frames[-1].is_group:
            state.frames.pop()

        route = _match_route(line, line_no, file, state.context)
        if route is not None:
            state.routes.append(route)
            if _OPENS_CLOSURE_RE.search(line):
                state.frames.append(_Frame(state.context, is_group=False))

        _attach_name(state, line, line_no)

    return state.routes


def controller_keys(controller: str, method: str) -> list[str]:
    """Keys a route bound to controller@method is indexed under."""
    name = short_controller(controller)
    keys = [f"{name}@{method}"]
    if name.endswith(CONTROLLER_SUFFIX):
        stripped = name[: -len(CONTROLLER_SUFFIX)]
        keys += [f"{stripped}@{method}", f"{stripped}{CONTROLLER_SUFFIX}@{method}"]
    else:
        keys.append(f"{name}{CONTROLLER_SUFFIX}@{method}")
    return list(dict.fromkeys(keys))


def lookup_keys(controller: str, method: str) -> list[str]:
    """Keys tried, in order, when looking up routes for controller@method."""
    name = short_controller(controller)
    stripped = name[: -len(CONTROLLER_SUFFIX)] if name.endswith(CONTROLLER_SUFFIX) else name
    keys = [f"{name}@{method}", f"{stripped}@{method}", f"{stripped}{CONTROLLER_SUFFIX}@{method}"]
    if not name.endswith(CONTROLLER_SUFFIX):
        keys.append(f"{name}{CONTROLLER_SUFFIX}@{method}")
    return list(dict.fromkeys(keys))


def build_controller_index(routes_by_file: dict[str, tuple[Route, ...]]) -> dict[str, tuple[Route, ...]]:
    index: dict[str, list[Route]] = {}
    for routes in routes_by_file.values():
        for route in routes:
            if route.controller and route.controller_method:
                for key in controller_keys(route.controller, route.controller_method):
                    index.setdefault(key, []).append(route)
    return {key: tuple(routes) for key, routes in index.items()}


def collect_routes(reader: SourceReader, routes_dir: Path) -> dict[str, tuple[Route, ...]]:
    """Routes of every file under routes_dir, keyed by project-relative path."""
    routes_by_file: dict[str, tuple[Route, ...]] = {}
    for path in reader.list_files(routes_dir):
        content = reader.read(path)
        if content is None:
            continue
        rel = reader.rel(path)
        routes_by_file[rel] = tuple(extract_routes(content, rel))
        logger.debug("route_file_parsed", path=rel, routes=len(routes_by_file[rel]))
    return routes_by_file
