"""Hashing options and the struct field tag mini-language.

Options are set globally when a Hasher is built and can be extended per
field with a tag, e.g. for the default tag key ``valuehash``::

    @dataclass
    class Account:
        secret: str = field(metadata={"valuehash": "-"})
        roles: list[str] = field(default_factory=list, metadata={"valuehash": "set"})

or, on a pydantic model, ``Field(json_schema_extra={"valuehash": "set"})``.

Tags can only turn flags on. ``-`` excludes the field entirely.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from valuehash.exceptions import ConfigurationError, InvalidTagOptionError

DEFAULT_TAG = "valuehash"
EXCLUDE = "-"

_UNORDERED = (
    "unordered_structs",
    "unordered_arrays",
    "unordered_lists",
    "unordered_sequences",
    "unordered_pairs",
)

# Tag token -> Options fields it switches on.
TAG_TOKENS: dict[str, tuple[str, ...]] = {
    "marker": ("marker",),
    "binary": ("prefer_binary",),
    "text": ("prefer_text",),
    "json": ("prefer_json",),
    "string": ("prefer_string",),
    "set": _UNORDERED,
    "zeronil": ("zero_nil",),
    "ignorezero": ("ignore_zero",),
}


class Options(BaseModel):
    """Immutable hashing configuration.

    Hashable, so it can be part of the encoder cache key together with
    the type it was compiled for.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: str = Field(default=DEFAULT_TAG, min_length=1, description="Field tag key")
    marker: bool = Field(default=False, description="Write the type name before each value")

    # Ordered vs folded composites
    unordered_structs: bool = Field(default=False, description="Fold struct fields")
    unordered_arrays: bool = Field(default=False, description="Fold tuple elements")
    unordered_lists: bool = Field(default=False, description="Fold list elements")
    unordered_sequences: bool = Field(default=False, description="Fold values of other iterables")
    unordered_pairs: bool = Field(default=False, description="Fold pairs of items() producers")

    # Delegates
    prefer_binary: bool = Field(default=False, description="Use __bytes__ when defined")
    prefer_text: bool = Field(default=False, description="Use marshal_text() when defined")
    prefer_json: bool = Field(default=False, description="Use model_dump_json()/to_json() when defined")
    prefer_string: bool = Field(default=False, description="Use a class-defined __str__")

    zero_nil: bool = Field(default=False, description="Hash None under Optional[X] as the zero X")
    ignore_zero: bool = Field(default=False, description="Skip zero-valued fields and elements")

    def with_tag(self, tag: str, field: str = "", type_name: str | None = None) -> "Options":
        """Return these options extended by a field tag.

        Args:
            tag: Comma-separated tag tokens (``-`` is handled by the caller).
            field: Field name, for error reporting.
            type_name: Owning type name, for error reporting.

        Raises:
            InvalidTagOptionError: If a token is not recognised.
        """
        if not tag:
            return self

        update: dict[str, bool] = {}
        for token in tag.split(","):
            token = token.strip()
            names = TAG_TOKENS.get(token)
            if names is None:
                raise InvalidTagOptionError(
                    f"valuehash: unknown struct tag option {token!r} on field {field!r}",
                    type_name=type_name,
                    field=field,
                    option=token,
                )
            for name in names:
                update[name] = True

        if all(getattr(self, name) for name in update):
            return self
        return self.model_copy(update=update)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Options":
        """Build options from a dict (e.g. parsed YAML).

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        try:
            return cls.model_validate(data or {})
        except ValueError as exc:
            raise ConfigurationError(f"Invalid valuehash options: {exc}") from exc

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Options":
        """Load options from a YAML file.

        Expected YAML structure::

            options:
              unordered_lists: true
              prefer_text: true
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Options file not found: {path}")

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Options file must contain a mapping: {path}")
        return cls.from_dict(raw.get("options", raw))


def parse_field_tag(tag: str) -> tuple[bool, str]:
    """Split a raw tag into (excluded, tokens)."""
    tag = tag.strip()
    if tag == EXCLUDE:
        return True, ""
    return False, tag
