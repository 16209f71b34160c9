from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence


class ConversionError(ValueError):
    pass


class Converter(Protocol):
    """
    Converts one declared schema type to and from its string form.
    Implementations raise ConversionError on incompatible input.
    """
    type_name: str

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> Any:
        ...

    def to_string(self, value: Any) -> str:
        ...


class StringConverter:
    type_name = "str"

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> str:
        return str(value)

    def to_string(self, value: Any) -> str:
        return str(value)


class IntegerConverter:
    def __init__(self, type_name: str, bits: int):
        self.type_name = type_name
        self._min = -(2 ** (bits - 1))
        self._max = 2 ** (bits - 1) - 1

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> int:
        try:
            n = int(str(value).strip())
        except (TypeError, ValueError):
            raise ConversionError(f"{value!r} is not a valid {self.type_name}")
        if n < self._min or n > self._max:
            raise ConversionError(f"{value!r} is out of range for {self.type_name} [{self._min}, {self._max}]")
        return n

    def to_string(self, value: Any) -> str:
        return str(int(value))


class FloatConverter:
    def __init__(self, type_name: str):
        self.type_name = type_name

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> float:
        try:
            return float(str(value).strip())
        except (TypeError, ValueError):
            raise ConversionError(f"{value!r} is not a valid {self.type_name}")

    def to_string(self, value: Any) -> str:
        return repr(float(value))


class DecimalConverter:
    type_name = "decimal"

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> Decimal:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            raise ConversionError(f"{value!r} is not a valid decimal")
        if not d.is_finite():
            raise ConversionError(f"{value!r} is not a finite decimal")
        return d

    def to_string(self, value: Any) -> str:
        return str(value)


class BoolConverter:
    type_name = "bool"

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> bool:
        v = str(value).strip().lower()
        if v == "true":
            return True
        if v == "false":
            return False
        raise ConversionError(f"{value!r} is not a valid bool (expected true/false)")

    def to_string(self, value: Any) -> str:
        return "true" if value else "false"


class EnumConverter:
    type_name = "enum"

    def convert(self, value: str, enum_values: Sequence[str] = ()) -> str:
        if value not in enum_values:
            raise ConversionError(f"{value!r} is not one of {list(enum_values)}")
        return value

    def to_string(self, value: Any) -> str:
        return str(getattr(value, "name", value))


def builtin_converters() -> Iterable[Converter]:
    return (
        StringConverter(),
        IntegerConverter("byte", 8),
        IntegerConverter("short", 16),
        IntegerConverter("int", 32),
        IntegerConverter("long", 64),
        FloatConverter("float"),
        FloatConverter("double"),
        DecimalConverter(),
        BoolConverter(),
        EnumConverter(),
    )


class TypeConversion:
    """Static table of converters keyed by schema type name."""

    def __init__(self, converters: Optional[Iterable[Converter]] = None):
        self._converters: Dict[str, Converter] = {}
        for c in converters if converters is not None else builtin_converters():
            self.register(c)

    def register(self, converter: Converter) -> None:
        self._converters[converter.type_name] = converter

    def supports(self, type_name: str) -> bool:
        return type_name in self._converters

    def types(self) -> list[str]:
        return sorted(self._converters.keys())

    def convert(self, value: str, type_name: str, enum_values: Sequence[str] = ()) -> Any:
        converter = self._converters.get(type_name)
        if converter is None:
            raise ConversionError(f"No converter registered for type '{type_name}'")
        if value is None:
            raise ConversionError("None cannot be converted")
        return converter.convert(value, enum_values)

    def to_string(self, value: Any, type_name: str) -> str:
        converter = self._converters.get(type_name)
        if converter is None:
            raise ConversionError(f"No converter registered for type '{type_name}'")
        return converter.to_string(value)


DEFAULT_CONVERSION = TypeConversion()
