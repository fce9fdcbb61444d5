"""Schema synthesis: migrations first, then Eloquent models.

Migrations are ground truth for column shape. A model's effective field list
is built from its class body (fillable, hidden, casts) and then overridden by
whatever the migrations say about its table.
"""

from __future__ import annotations

import re
from dataclasses import replace
from pathlib import Path

import structlog

from laraindex.core.errors import MalformedContentError
from laraindex.index._internal.parsing.php_array import PhpArray, PhpExpr, block_end, parse_array_at
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import (
    DatabaseTable,
    Field,
    FieldSource,
    FieldType,
    MigrationColumn,
    Model,
    RelationKind,
    Relationship,
)

logger = structlog.get_logger()

# ============================================================================
# Naming
# ============================================================================


def snake_case(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def pluralize(word: str) -> str:
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def table_for_model(name: str) -> str:
    return pluralize(snake_case(name))


# ============================================================================
# Migrations
# ============================================================================

_SCHEMA_BLOCK_RE = re.compile(r"Schema::(?P<op>\w+)\s*\(\s*(?:(['\"`])(?P<table>[^'\"`]+)\2)?")
_COLUMN_RE = re.compile(
    r"\$table->(?P<verb>\w+)\s*\(\s*(?:(['\"`])(?P<col>[^'\"`]+)\2)?(?P<rest>[^;]*);"
)
_LENGTH_RE = re.compile(r"^\s*,\s*(\d+)")
_NULLABLE_RE = re.compile(r"->nullable\s*\(\s*(?:true)?\s*\)")
_DEFAULT_CALL_RE = re.compile(r"->default\s*\(")
_QUOTED_RE = re.compile(r"^(['\"`])(.*)\1$", re.DOTALL)
_COMMENT_RE = re.compile(r"->comment\s*\(\s*(['\"`])(.*?)\1\s*\)")

_NON_COLUMN_VERBS = frozenset(
    {
        "index",
        "unique",
        "primary",
        "foreign",
        "spatialIndex",
        "fullText",
        "engine",
        "charset",
        "collation",
        "comment",
        "temporary",
    }
)

_MIGRATION_TYPES: dict[str, FieldType] = {
    "id": FieldType.INTEGER,
    "bigIncrements": FieldType.INTEGER,
    "increments": FieldType.INTEGER,
    "mediumIncrements": FieldType.INTEGER,
    "smallIncrements": FieldType.INTEGER,
    "tinyIncrements": FieldType.INTEGER,
    "integer": FieldType.INTEGER,
    "bigInteger": FieldType.INTEGER,
    "mediumInteger": FieldType.INTEGER,
    "smallInteger": FieldType.INTEGER,
    "tinyInteger": FieldType.INTEGER,
    "unsignedInteger": FieldType.INTEGER,
    "unsignedBigInteger": FieldType.INTEGER,
    "unsignedMediumInteger": FieldType.INTEGER,
    "unsignedSmallInteger": FieldType.INTEGER,
    "unsignedTinyInteger": FieldType.INTEGER,
    "foreignId": FieldType.INTEGER,
    "foreignIdFor": FieldType.INTEGER,
    "year": FieldType.INTEGER,
    "string": FieldType.STRING,
    "text": FieldType.STRING,
    "tinyText": FieldType.STRING,
    "mediumText": FieldType.STRING,
    "longText": FieldType.STRING,
    "char": FieldType.STRING,
    "enum": FieldType.STRING,
    "set": FieldType.STRING,
    "uuid": FieldType.STRING,
    "foreignUuid": FieldType.STRING,
    "ulid": FieldType.STRING,
    "foreignUlid": FieldType.STRING,
    "ipAddress": FieldType.STRING,
    "macAddress": FieldType.STRING,
    "time": FieldType.STRING,
    "timeTz": FieldType.STRING,
    "boolean": FieldType.BOOLEAN,
    "date": FieldType.DATE,
    "dateTime": FieldType.DATETIME,
    "dateTimeTz": FieldType.DATETIME,
    "timestamp": FieldType.TIMESTAMP,
    "timestampTz": FieldType.TIMESTAMP,
    "decimal": FieldType.DECIMAL,
    "unsignedDecimal": FieldType.DECIMAL,
    "double": FieldType.FLOAT,
    "float": FieldType.FLOAT,
    "json": FieldType.JSON,
    "jsonb": FieldType.JSON,
    "binary": FieldType.BINARY,
}


def _special_columns(verb: str, col: str | None) -> list[tuple[str, FieldType, bool]] | None:
    """Expansion of convenience calls into (name, type, nullable), or None."""
    if verb in ("timestamps", "timestampsTz", "nullableTimestamps"):
        return [("created_at", FieldType.TIMESTAMP, True), ("updated_at", FieldType.TIMESTAMP, True)]
    if verb in ("softDeletes", "softDeletesTz"):
        return [(col or "deleted_at", FieldType.TIMESTAMP, True)]
    if verb == "rememberToken":
        return [("remember_token", FieldType.STRING, True)]
    if verb in ("id", "bigIncrements") and col is None:
        return [("id", FieldType.INTEGER, False)]
    if verb in ("morphs", "nullableMorphs", "uuidMorphs", "nullableUuidMorphs") and col:
        nullable = verb.startswith("nullable")
        id_type = FieldType.STRING if "Uuid" in verb else FieldType.INTEGER
        return [(f"{col}_id", id_type, nullable), (f"{col}_type", FieldType.STRING, nullable)]
    return None


def _is_column_verb(verb: str) -> bool:
    return verb not in _NON_COLUMN_VERBS and not verb.startswith(("drop", "rename"))


def _schema_blocks(content: str) -> list[tuple[str, int, int]]:
    """(table, start, end) spans of Schema::create/table blocks.

    Any other Schema:: call (dropIfExists, ...) ends the preceding block.
    """
    marks = list(_SCHEMA_BLOCK_RE.finditer(content))
    blocks: list[tuple[str, int, int]] = []
    for i, m in enumerate(marks):
        if m.group("op") not in ("create", "table") or not m.group("table"):
            continue
        end = marks[i + 1].start() if i + 1 < len(marks) else len(content)
        blocks.append((m.group("table"), m.end(), end))
    return blocks


def parse_migration(content: str, file: str) -> list[MigrationColumn]:
    """Columns declared by one migration file, in statement order."""
    columns: list[MigrationColumn] = []
    for table, start, end in _schema_blocks(content):
        for m in _COLUMN_RE.finditer(content, start, end):
            verb, col, rest = m.group("verb"), m.group("col"), m.group("rest")
            line = content.count("\n", 0, m.start()) + 1

            special = _special_columns(verb, col)
            if special is not None:
                columns.extend(
                    MigrationColumn(table=table, name=name, type=ftype, file=file, line=line, nullable=nullable)
                    for name, ftype, nullable in special
                )
                continue
            if col is None or not _is_column_verb(verb):
                continue

            default = column_default(rest)
            comment = _COMMENT_RE.search(rest)
            columns.append(
                MigrationColumn(
                    table=table,
                    name=col,
                    type=_MIGRATION_TYPES.get(verb, FieldType.STRING),
                    file=file,
                    line=line,
                    nullable=bool(_NULLABLE_RE.search(rest)),
                    default=default,
                    comment=comment.group(2) if comment else None,
                    length=column_length(rest),
                )
            )
    return columns


def column_default(statement_rest: str) -> str | None:
    """Argument of ``->default(...)``, unquoted when it is a single string literal."""
    m = _DEFAULT_CALL_RE.search(statement_rest)
    if m is None:
        return None
    try:
        end = block_end(statement_rest, m.end() - 1)
    except MalformedContentError:
        return None
    value = statement_rest[m.end() : end - 1].strip()
    quoted = _QUOTED_RE.match(value)
    return quoted.group(2) if quoted else value


def column_length(statement_rest: str) -> int | None:
    m = _LENGTH_RE.match(statement_rest)
    return int(m.group(1)) if m else None


def build_tables(migrations: list[tuple[str, str]]) -> dict[str, DatabaseTable]:
    """Fold (file, content) migrations, in order, into per-table column lists.

    A later declaration of a column replaces the earlier one in place.
    """
    tables: dict[str, list[MigrationColumn]] = {}
    for file, content in migrations:
        for column in parse_migration(content, file):
            columns = tables.setdefault(column.table, [])
            for i, existing in enumerate(columns):
                if existing.name == column.name:
                    columns[i] = column
                    break
            else:
                columns.append(column)
    return {name: DatabaseTable(name=name, columns=tuple(cols)) for name, cols in tables.items()}


# ============================================================================
# Models
# ============================================================================

_MODEL_MARKERS = (
    "extends Model",
    "extends Authenticatable",
    "extends Pivot",
    "use HasFactory",
    "use Illuminate\\Database\\Eloquent\\Model",
)
_CLASS_RE = re.compile(r"^\s*(?:(?:abstract|final)\s+)*class\s+(\w+)", re.MULTILINE)
_TABLE_PROP_RE = re.compile(r"\$table\s*=\s*['\"`]([^'\"`]+)['\"`]")
_FILLABLE_RE = re.compile(r"\$fillable\s*=\s*(?=\[|array\s*\()")
_HIDDEN_RE = re.compile(r"\$hidden\s*=\s*(?=\[|array\s*\()")
_CASTS_PROP_RE = re.compile(r"\$casts\s*=\s*(?=\[|array\s*\()")
_CASTS_METHOD_RE = re.compile(
    r"function\s+casts\s*\([^)]*\)\s*(?::\s*[\w\\?]+\s*)?\{\s*return\s*(?=\[|array\s*\()"
)
_RELATION_RE = re.compile(
    r"public\s+function\s+(?P<name>\w+)\s*\([^)]*\)\s*(?::\s*[\w\\?]+\s*)?\{[^}]*?"
    r"\b(?P<kind>hasOneThrough|hasManyThrough|hasOne|hasMany|belongsToMany|belongsTo"
    r"|morphToMany|morphedByMany|morphTo|morphOne|morphMany)\s*\(\s*(?P<arg>[^,)]*)"
)

_RELATION_KINDS: dict[str, RelationKind] = {
    "hasOne": RelationKind.HAS_ONE,
    "hasMany": RelationKind.HAS_MANY,
    "belongsTo": RelationKind.BELONGS_TO,
    "belongsToMany": RelationKind.BELONGS_TO_MANY,
    "hasOneThrough": RelationKind.HAS_ONE_THROUGH,
    "hasManyThrough": RelationKind.HAS_MANY_THROUGH,
    "morphTo": RelationKind.MORPH_TO,
    "morphOne": RelationKind.MORPH_ONE,
    "morphMany": RelationKind.MORPH_MANY,
    "morphToMany": RelationKind.MORPH_TO_MANY,
    "morphedByMany": RelationKind.MORPHED_BY_MANY,
}

_CAST_TYPES: dict[str, FieldType] = {
    "integer": FieldType.INTEGER,
    "int": FieldType.INTEGER,
    "real": FieldType.FLOAT,
    "float": FieldType.FLOAT,
    "double": FieldType.FLOAT,
    "decimal": FieldType.DECIMAL,
    "string": FieldType.STRING,
    "boolean": FieldType.BOOLEAN,
    "bool": FieldType.BOOLEAN,
    "object": FieldType.OBJECT,
    "array": FieldType.ARRAY,
    "collection": FieldType.COLLECTION,
    "date": FieldType.DATE,
    "immutable_date": FieldType.DATE,
    "datetime": FieldType.DATETIME,
    "immutable_datetime": FieldType.DATETIME,
    "custom_datetime": FieldType.DATETIME,
    "timestamp": FieldType.TIMESTAMP,
    "json": FieldType.JSON,
}

_IMPLICIT_FIELDS = (
    ("id", FieldType.INTEGER),
    ("created_at", FieldType.DATETIME),
    ("updated_at", FieldType.DATETIME),
)


def cast_to_type(cast: str) -> FieldType:
    """Map a cast name to a field type. 'decimal:2' -> decimal, unknown -> string."""
    return _CAST_TYPES.get(cast.split(":", 1)[0].strip().lower(), FieldType.STRING)


def is_model_source(content: str) -> bool:
    if any(marker in content for marker in _MODEL_MARKERS):
        return True
    return bool(_CLASS_RE.search(content)) and ("$fillable" in content or "$table" in content)


def normalize_related(arg: str) -> str | None:
    """'App\\Models\\Post::class' / '"Post"' -> 'Post'."""
    cleaned = arg.strip().strip("'\"`").replace("::class", "")
    cleaned = cleaned.rsplit("\\", 1)[-1].strip()
    return cleaned or None


def extract_relationships(content: str) -> list[Relationship]:
    relationships: list[Relationship] = []
    for m in _RELATION_RE.finditer(content):
        kind = _RELATION_KINDS[m.group("kind")]
        related = None if kind is RelationKind.MORPH_TO else normalize_related(m.group("arg"))
        relationships.append(Relationship(name=m.group("name"), kind=kind, related=related))
    return relationships


def _property_array(content: str, pattern: re.Pattern[str], file: str) -> PhpArray | None:
    m = pattern.search(content)
    if m is None:
        return None
    try:
        return parse_array_at(content, m.end())
    except MalformedContentError as e:
        logger.warning("model_property_malformed", path=file, error=e.message)
        return None


def _casts(content: str, file: str) -> list[tuple[str, FieldType]]:
    array = _property_array(content, _CASTS_PROP_RE, file) or _property_array(content, _CASTS_METHOD_RE, file)
    if array is None:
        return []
    casts: list[tuple[str, FieldType]] = []
    for item in array.items:
        if item.key is None:
            continue
        cast = item.value if isinstance(item.value, str) else item.value.text if isinstance(item.value, PhpExpr) else ""
        casts.append((item.key, cast_to_type(cast)))
    return casts


def _set_field(fields: list[Field], new: Field) -> None:
    for i, existing in enumerate(fields):
        if existing.name == new.name:
            fields[i] = new
            return
    fields.append(new)


def parse_model(content: str, file: str, stem: str, tables: dict[str, DatabaseTable]) -> Model | None:
    """Build a Model from a class file, or None if the file is not a model."""
    if not is_model_source(content):
        return None

    class_match = _CLASS_RE.search(content)
    name = class_match.group(1) if class_match else stem
    table_match = _TABLE_PROP_RE.search(content)
    table = table_match.group(1) if table_match else table_for_model(name)

    fields: list[Field] = []
    fillable = _property_array(content, _FILLABLE_RE, file)
    for field_name in fillable.string_values() if fillable else []:
        if field_name.strip():
            _set_field(fields, Field(name=field_name.strip(), source=FieldSource.FILLABLE))

    hidden = _property_array(content, _HIDDEN_RE, file)
    known = {f.name for f in fields}
    for field_name in hidden.string_values() if hidden else []:
        if field_name.strip() and field_name.strip() not in known:
            fields.append(Field(name=field_name.strip(), source=FieldSource.HIDDEN))
            known.add(field_name.strip())

    for field_name, ftype in _casts(content, file):
        existing = next((f for f in fields if f.name == field_name), None)
        if existing is not None:
            _set_field(fields, replace(existing, type=ftype, source=FieldSource.CAST))
        else:
            fields.append(Field(name=field_name, type=ftype, source=FieldSource.CAST))

    db_table = tables.get(table)
    for column in db_table.columns if db_table else ():
        existing = next((f for f in fields if f.name == column.name), None)
        _set_field(
            fields,
            Field(
                name=column.name,
                type=column.type,
                nullable=column.nullable,
                source=FieldSource.MIGRATION,
                default=column.default,
                comment=column.comment if column.comment is not None else existing.comment if existing else None,
            ),
        )

    known = {f.name for f in fields}
    for field_name, ftype in _IMPLICIT_FIELDS:
        if field_name not in known:
            fields.append(Field(name=field_name, type=ftype, source=FieldSource.IMPLICIT))

    return Model(
        name=name,
        table=table,
        file=file,
        fields=tuple(fields),
        relationships=tuple(extract_relationships(content)),
    )


# ============================================================================
# Domain build
# ============================================================================


def collect_tables(reader: SourceReader, migrations_dir: Path) -> dict[str, DatabaseTable]:
    migrations: list[tuple[str, str]] = []
    # Filenames are timestamp-prefixed: lexical order is chronological order
    for path in sorted(reader.list_files(migrations_dir), key=lambda p: (p.name, p.as_posix())):
        content = reader.read(path)
        if content is not None:
            migrations.append((reader.rel(path), content))
    return build_tables(migrations)


def collect_models(
    reader: SourceReader,
    model_dirs: list[Path],
    tables: dict[str, DatabaseTable],
) -> dict[str, Model]:
    """Models by class name. The first directory is walked recursively, the rest shallowly."""
    models: dict[str, Model] = {}
    for index, directory in enumerate(model_dirs):
        for path in reader.list_files(directory, recursive=index == 0):
            if "Controller" in path.name:
                continue
            content = reader.read(path)
            if content is None:
                continue
            model = parse_model(content, reader.rel(path), path.stem, tables)
            if model is None or model.name in models:
                continue
            models[model.name] = model
            logger.debug("model_parsed", model=model.name, table=model.table, fields=len(model.fields))
    return models
