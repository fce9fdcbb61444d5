"""Built-in validation rule catalog.

Hand-curated reference data, not derived from the project. Categories follow
the grouping of the Laravel validation docs.
"""

from __future__ import annotations

from laraindex.index.models import ValidationParameter, ValidationRule

DOC_BASE_URL = "https://laravel.com/docs/validation"

# Mutual exclusions, declared one way. Always evaluate both directions.
MUTUALLY_EXCLUSIVE: dict[str, frozenset[str]] = {
    "required": frozenset({"nullable", "sometimes"}),
    "nullable": frozenset({"required"}),
    "string": frozenset({"numeric", "integer", "boolean", "array", "file", "image"}),
    "numeric": frozenset({"string", "boolean", "array", "file", "image"}),
    "integer": frozenset({"string", "boolean", "array", "file", "image", "decimal"}),
    "boolean": frozenset({"string", "numeric", "integer", "array", "file", "image"}),
    "array": frozenset({"string", "numeric", "integer", "boolean", "file", "image"}),
    "file": frozenset({"string", "numeric", "integer", "boolean", "array"}),
    "image": frozenset({"string", "numeric", "integer", "boolean", "array"}),
}

# Lower sorts first; unlisted rules get DEFAULT_PRIORITY.
RULE_PRIORITIES: dict[str, int] = {
    "required": 1,
    "nullable": 2,
    "string": 3,
    "integer": 3,
    "numeric": 3,
    "boolean": 3,
    "array": 3,
    "max": 4,
    "min": 4,
    "email": 5,
    "unique": 6,
    "exists": 6,
}
DEFAULT_PRIORITY = 10


def _param(
    name: str,
    type: str,
    description: str,
    *,
    required: bool = True,
    examples: tuple[str, ...] = (),
) -> ValidationParameter:
    return ValidationParameter(name=name, type=type, required=required, description=description, examples=examples)


def _rule(
    name: str,
    category: str,
    description: str,
    *params: ValidationParameter,
    examples: tuple[str, ...] = (),
) -> ValidationRule:
    return ValidationRule(
        name=name,
        category=category,
        description=description,
        parameters=params,
        examples=examples or (name,),
        doc_url=f"{DOC_BASE_URL}#rule-{name.replace('_', '-')}",
    )


_TABLE = _param("table", "string", "Table name or model")
_COLUMN = _param("column", "string", "Column name", required=False)
_OTHER_FIELD = _param("field", "string", "Other field under validation")
_DATE = _param("date", "string", "Date or other field name", examples=("today", "tomorrow", "start_date"))

BUILTIN_RULES: tuple[ValidationRule, ...] = (
    # Presence
    _rule("required", "Basic", "The field under validation must be present in the input data and not empty"),
    _rule("nullable", "Basic", "The field under validation may be null"),
    _rule("sometimes", "Basic", "Only validate the field when it is present in the input"),
    _rule("present", "Basic", "The field under validation must exist in the input data"),
    _rule("filled", "Basic", "The field under validation must not be empty when it is present"),
    _rule(
        "required_if",
        "Basic",
        "The field is required when another field equals a value",
        _OTHER_FIELD,
        _param("value", "string", "Value of the other field"),
        examples=("required_if:role,admin",),
    ),
    _rule(
        "required_with",
        "Basic",
        "The field is required when any of the other fields are present",
        _param("fields", "string", "Comma-separated field names"),
        examples=("required_with:first_name,last_name",),
    ),
    _rule(
        "required_without",
        "Basic",
        "The field is required when any of the other fields are absent",
        _param("fields", "string", "Comma-separated field names"),
        examples=("required_without:phone",),
    ),
    # Types
    _rule("string", "String", "The field under validation must be a string"),
    _rule("integer", "Numeric", "The field under validation must be an integer"),
    _rule("numeric", "Numeric", "The field under validation must be numeric"),
    _rule(
        "decimal",
        "Numeric",
        "The field under validation must be numeric with the given number of decimal places",
        _param("min", "integer", "Minimum decimal places", examples=("2",)),
        _param("max", "integer", "Maximum decimal places", required=False, examples=("4",)),
        examples=("decimal:2", "decimal:2,4"),
    ),
    _rule("boolean", "Boolean", "The field under validation must be able to be cast as a boolean"),
    _rule("accepted", "Boolean", "The field under validation must be yes, on, 1, or true"),
    _rule("array", "Array", "The field under validation must be a PHP array"),
    _rule("json", "String", "The field under validation must be a valid JSON string"),
    # Formats
    _rule(
        "email",
        "Format",
        "The field under validation must be formatted as an email address",
        examples=("email", "email:rfc,dns"),
    ),
    _rule("url", "Format", "The field under validation must be a valid URL"),
    _rule("uuid", "Format", "The field under validation must be a valid UUID"),
    _rule("ip", "Format", "The field under validation must be an IP address"),
    _rule("alpha", "String", "The field under validation must be entirely alphabetic characters"),
    _rule("alpha_num", "String", "The field under validation must be entirely alpha-numeric characters"),
    _rule("alpha_dash", "String", "The field may have alpha-numeric characters, dashes and underscores"),
    _rule(
        "regex",
        "Pattern",
        "The field under validation must match the given regular expression",
        _param("pattern", "string", "Regular expression pattern"),
        examples=("regex:/^[A-Za-z0-9]+$/", "regex:/^\\+?[1-9]\\d{1,14}$/"),
    ),
    # Size
    _rule(
        "min",
        "Size",
        "The field under validation must have a minimum value/length",
        _param("value", "integer", "Minimum value or length"),
        examples=("min:3", "min:8"),
    ),
    _rule(
        "max",
        "Size",
        "The field under validation must have a maximum value/length",
        _param("value", "integer", "Maximum value or length"),
        examples=("max:255", "max:100"),
    ),
    _rule(
        "size",
        "Size",
        "The field under validation must have a size matching the given value",
        _param("value", "integer", "Exact value or length"),
        examples=("size:10",),
    ),
    _rule(
        "between",
        "Size",
        "The field under validation must have a size between the given min and max",
        _param("min", "integer", "Minimum value or length", examples=("1",)),
        _param("max", "integer", "Maximum value or length", examples=("10",)),
        examples=("between:1,10",),
    ),
    _rule(
        "digits",
        "Numeric",
        "The integer under validation must have an exact length",
        _param("value", "integer", "Number of digits"),
        examples=("digits:4",),
    ),
    # Comparison
    _rule("confirmed", "Confirmation", "The field under validation must have a matching field of {field}_confirmation"),
    _rule(
        "same",
        "Confirmation",
        "The given field must match the field under validation",
        _OTHER_FIELD,
        examples=("same:password",),
    ),
    _rule(
        "different",
        "Confirmation",
        "The field under validation must have a different value than the given field",
        _OTHER_FIELD,
        examples=("different:old_password",),
    ),
    # Database
    _rule(
        "unique",
        "Database",
        "The field under validation must not exist within the given database table",
        _TABLE,
        _COLUMN,
        examples=("unique:users", "unique:users,email"),
    ),
    _rule(
        "exists",
        "Database",
        "The field under validation must exist in a given database table",
        _TABLE,
        _COLUMN,
        examples=("exists:users", "exists:users,id"),
    ),
    # Options
    _rule(
        "in",
        "Options",
        "The field under validation must be included in the given list of values",
        _param("values", "string", "Comma-separated list of allowed values"),
        examples=("in:admin,user,guest", "in:red,green,blue"),
    ),
    _rule(
        "not_in",
        "Options",
        "The field under validation must not be included in the given list of values",
        _param("values", "string", "Comma-separated list of forbidden values"),
        examples=("not_in:admin,root",),
    ),
    # Dates
    _rule("date", "Date", "The field under validation must be a valid, non-relative date"),
    _rule(
        "date_format",
        "Date",
        "The field under validation must match the given format",
        _param("format", "string", "Date format", examples=("Y-m-d",)),
        examples=("date_format:Y-m-d",),
    ),
    _rule("after", "Date", "The field under validation must be a value after a given date", _DATE, examples=("after:today",)),
    _rule(
        "before",
        "Date",
        "The field under validation must be a value preceding the given date",
        _DATE,
        examples=("before:tomorrow",),
    ),
    # Files
    _rule("file", "File", "The field under validation must be a successfully uploaded file"),
    _rule("image", "File", "The field under validation must be an image (jpeg, png, bmp, gif, svg, or webp)"),
    _rule(
        "mimes",
        "File",
        "The file under validation must have a MIME type corresponding to one of the listed extensions",
        _param("extensions", "string", "Comma-separated file extensions", examples=("jpg,png,pdf",)),
        examples=("mimes:jpg,png,pdf",),
    ),
)
