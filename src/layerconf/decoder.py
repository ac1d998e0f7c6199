"""Decoding of configuration values into typed Python objects.

The decoder walks a destination type hint and fills it from a `Value`.
Children are always looked up through the value (`value.get(child)`), so
literal dotted keys, provider priorities and attached defaults apply at
every depth.

Supported destination shapes:

- scalars: `str`, `int`, `float`, `bool`, `bytes`, `datetime.date`,
  `datetime.datetime`, `datetime.timedelta` and their subclasses
- pointers: `T | None`
- fixed-length sequences: `tuple[int, str]`
- growable sequences: `list[T]`, `tuple[T, ...]`
- keyed mappings: `dict[K, V]`
- records: dataclasses and pydantic models
- raw values: `Any` and `object`

A type may take over its own decoding by defining `unmarshal_config`,
`unmarshal_text` or `unmarshal_json` (checked in that order).
"""

import collections.abc
import dataclasses
import json
import types
import typing
from collections.abc import Callable
from typing import Annotated, Any, Protocol, Union, get_args, get_origin

from pydantic import BaseModel

from layerconf.convert import (
    convert_scalar,
    format_scalar,
    is_scalar_type,
    type_name,
    zero_scalar,
)
from layerconf.exceptions import ConversionError, CycleError, DecodeError
from layerconf.tree import NULL, Mapping, Scalar, Sequence, to_native
from layerconf.value import Value

NAME_METADATA = "layerconf_name"
DEFAULT_METADATA = "layerconf_default"
PYDANTIC_DEFAULT_KEY = "config_default"

DecodeFunc = Callable[..., Any]

_HOOKS = ("unmarshal_config", "unmarshal_text", "unmarshal_json")
_LIST_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_DICT_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class ConfigUnmarshaler(Protocol):
    """Type that decodes itself, optionally delegating parts via `decode`."""

    def unmarshal_config(self, decode: DecodeFunc) -> None: ...


class TextUnmarshaler(Protocol):
    """Type that decodes itself from the text of a scalar."""

    def unmarshal_text(self, text: str) -> None: ...


class JSONUnmarshaler(Protocol):
    """Type that decodes itself from the compact JSON form of its subtree."""

    def unmarshal_json(self, data: bytes) -> None: ...


def config_field(
    *, name: str | None = None, default_text: str | None = None, **kwargs: Any
) -> Any:
    """Declare a dataclass field with configuration metadata.

    Args:
        name: External key of the field, if different from its identifier.
        default_text: Value used when the configuration has none for the
            field. It is converted like any configured value.
        **kwargs: Passed through to `dataclasses.field`.

    Returns:
        A dataclass field.

    Example:
        @dataclass
        class Server:
            port: int = config_field(name="listen_port", default_text="8080")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[NAME_METADATA] = name
    if default_text is not None:
        metadata[DEFAULT_METADATA] = default_text
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclasses.dataclass(frozen=True)
class RecordField:
    """A public field of a record type."""

    attr: str
    key: str
    hint: Any
    default_text: str | None = None


def is_record(tp: Any) -> bool:
    """Check whether `tp` is a dataclass or a pydantic model class."""
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def record_fields(tp: type) -> list[RecordField]:
    """List the decodable fields of a record type.

    Fields whose name starts with an underscore are never read or written.
    """
    fields: list[RecordField] = []

    if issubclass(tp, BaseModel):
        for attr, info in tp.model_fields.items():
            if attr.startswith("_"):
                continue
            extra = info.json_schema_extra
            if not isinstance(extra, dict):
                extra = {}
            fields.append(
                RecordField(
                    attr,
                    info.alias or attr,
                    info.annotation,
                    extra.get(PYDANTIC_DEFAULT_KEY),
                )
            )
        return fields

    hints = typing.get_type_hints(tp, include_extras=True)
    for f in dataclasses.fields(tp):
        if f.name.startswith("_"):
            continue
        fields.append(
            RecordField(
                f.name,
                f.metadata.get(NAME_METADATA, f.name),
                hints.get(f.name, Any),
                f.metadata.get(DEFAULT_METADATA),
            )
        )
    return fields


def _unwrap(shape: Any) -> Any:
    while get_origin(shape) is Annotated:
        shape = get_args(shape)[0]
    return shape


def _optional_inner(shape: Any) -> tuple[bool, Any]:
    """Split `T | None` into (True, T). Other shapes give (False, shape)."""
    if get_origin(shape) not in (Union, types.UnionType):
        return False, shape
    args = [arg for arg in get_args(shape) if arg is not type(None)]
    if len(args) != 1 or len(args) == len(get_args(shape)):
        return False, shape
    return True, args[0]


def _is_fixed_tuple(shape: Any) -> bool:
    args = get_args(shape)
    return get_origin(shape) is tuple and bool(args) and args[-1] is not Ellipsis


def zero_value(shape: Any) -> Any:
    """Zero value of a destination shape."""
    shape = _unwrap(shape)
    if _optional_inner(shape)[0]:
        return None
    if _is_fixed_tuple(shape):
        return tuple(zero_value(arg) for arg in get_args(shape))
    if is_record(shape):
        return _zero_record(shape)
    if is_scalar_type(shape):
        return zero_scalar(shape)
    return None


def _zero_record(tp: type) -> Any:
    """Build an instance of a record type without validation.

    Fields without a default get the zero value of their type.
    """
    if issubclass(tp, BaseModel):
        instance = tp.model_construct()
        for attr, info in tp.model_fields.items():
            if info.is_required():
                setattr(instance, attr, zero_value(info.annotation))
        return instance

    hints = typing.get_type_hints(tp, include_extras=True)
    kwargs = {}
    for f in dataclasses.fields(tp):
        if not f.init:
            continue
        has_default = not (
            f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        )
        if not has_default:
            kwargs[f.name] = zero_value(hints.get(f.name, Any))
    return tp(**kwargs)


def _new_instance(tp: type) -> Any:
    if is_record(tp):
        return _zero_record(tp)
    return tp()


def _has_method(obj: Any, name: str) -> bool:
    return callable(getattr(obj, name, None))


def _has_hook(tp: Any) -> bool:
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return any(_has_method(tp, hook) for hook in _HOOKS)


def _shape_error(value: Value, expected: str) -> DecodeError:
    return DecodeError(
        value.key, f'expected {expected}, actual type: "{value.node.shape}"'
    )


class Decoder:
    """Decodes one value into typed destinations.

    The set of records on the current recursion path belongs to the decoder
    instance, so each decode call detects cycles independently.
    """

    def __init__(self, value: Value) -> None:
        self._value = value
        self._visiting: set[int] = set()

    def decode(self, shape: Any, current: Any = None) -> Any:
        """Decode the value into `shape`, starting from `current`.

        Raises:
            DecodeError: If the value does not fit the shape.
        """
        return self._decode(self._value, shape, current)

    def populate(self, target: Any) -> Any:
        """Decode the value into an existing record or hook instance.

        Args:
            target: A dataclass instance, a pydantic model or an object whose
                type defines a decode hook.

        Returns:
            The target, populated in place.

        Raises:
            TypeError: If target cannot be populated in place.
            DecodeError: If the value does not fit the target.
        """
        tp = type(target)
        if not (is_record(tp) or _has_hook(tp)):
            raise TypeError(
                f"can't populate a {tp.__name__}: expected a record or a type "
                "with a decode hook"
            )
        return self._decode(self._value, tp, target)

    def _decode(
        self, value: Value, shape: Any, current: Any, hooks: bool = True
    ) -> Any:
        shape = _unwrap(shape)

        if shape is Any or shape is object:
            return value.value() if value.has_value() else current

        is_optional, inner = _optional_inner(shape)
        if is_optional:
            return self._decode_pointer(value, inner, current)

        if hooks and _has_hook(shape):
            return self._decode_hook(value, shape, current)

        origin = get_origin(shape) or shape
        if origin in _LIST_ORIGINS:
            return self._decode_list(value, shape, current)
        if origin is tuple:
            if _is_fixed_tuple(shape):
                return self._decode_fixed(value, shape, current)
            result = self._decode_list(value, shape, current)
            return tuple(result) if result is not None else None
        if origin in _DICT_ORIGINS:
            return self._decode_dict(value, shape, current)
        if is_record(shape):
            return self._decode_record(value, shape, current)
        if is_scalar_type(shape):
            return self._decode_scalar(value, shape, current)

        if value.has_value() and value.node is not NULL:
            raise DecodeError(
                value.key, f"unsupported destination type {type_name(shape)}"
            )
        return current

    def _decode_pointer(self, value: Value, inner: Any, current: Any) -> Any:
        if not value.has_value():
            return current
        if value.node is NULL:
            return None
        return self._decode(value, inner, current)

    def _decode_hook(self, value: Value, tp: type, current: Any) -> Any:
        node = value.node
        if not value.has_value() or node is NULL:
            return current

        instance = current if current is not None else _new_instance(tp)

        try:
            if _has_method(instance, "unmarshal_config"):

                def decode(shape: Any, current: Any = None) -> Any:
                    return self._decode(value, shape, current, hooks=shape is not tp)

                instance.unmarshal_config(decode)
            elif _has_method(instance, "unmarshal_text") and isinstance(node, Scalar):
                instance.unmarshal_text(format_scalar(node.value))
            elif _has_method(instance, "unmarshal_json"):
                try:
                    data = json.dumps(
                        to_native(node), sort_keys=True, separators=(",", ":")
                    )
                except (TypeError, ValueError) as e:
                    raise DecodeError(value.key, f"can't serialize value: {e}") from e
                instance.unmarshal_json(data.encode())
            else:
                raise _shape_error(value, "scalar")
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(value.key, str(e)) from e

        return instance

    def _decode_scalar(self, value: Value, shape: type, current: Any) -> Any:
        if not value.has_value():
            return current

        node = value.node
        if node is NULL:
            return zero_scalar(shape)
        if not isinstance(node, Scalar):
            raise _shape_error(value, type_name(shape))

        try:
            return convert_scalar(node.value, shape)
        except ConversionError as e:
            raise DecodeError(value.key, str(e)) from e

    def _decode_list(self, value: Value, shape: Any, current: Any) -> list | None:
        if not value.has_value():
            return list(current) if current is not None else None

        node = value.node
        if node is NULL:
            return None
        if not isinstance(node, Sequence):
            raise _shape_error(value, "sequence")

        args = get_args(shape)
        elem = args[0] if args else Any
        existing = list(current) if current is not None else []

        result = []
        for i in range(len(node)):
            element = existing[i] if i < len(existing) else None
            child = value.get(str(i))
            if not child.has_value():
                # Padding left by a dotted index key past the end of the source
                child = Value(value.provider, child.key, node[i], True, value.timestamp)
            result.append(self._decode(child, elem, element))
        return result

    def _decode_fixed(self, value: Value, shape: Any, current: Any) -> tuple:
        args = get_args(shape)
        node = value.node

        if value.has_value() and node is not NULL and not isinstance(node, Sequence):
            raise _shape_error(value, "sequence")

        if current is None or (value.has_value() and node is NULL):
            items = [zero_value(arg) for arg in args]
        else:
            items = list(current)
            items.extend(zero_value(arg) for arg in args[len(items) :])

        # Every index is visited so that record elements get their defaults
        for i, elem in enumerate(args):
            items[i] = self._decode(value.get(str(i)), elem, items[i])
        return tuple(items[: len(args)])

    def _decode_dict(self, value: Value, shape: Any, current: Any) -> dict | None:
        if not value.has_value():
            return current

        node = value.node
        if node is NULL:
            return None
        if not isinstance(node, Mapping):
            raise _shape_error(value, "mapping")

        args = get_args(shape)
        key_shape, value_shape = args if len(args) == 2 else (Any, Any)

        result = {}
        for key in node.keys():
            child = value.get(key)
            try:
                converted = convert_scalar(key, _unwrap(key_shape))
            except ConversionError as e:
                raise DecodeError(child.key, str(e)) from e
            existing = current.get(converted) if current is not None else None
            result[converted] = self._decode(child, value_shape, existing)
        return result

    def _decode_record(self, value: Value, tp: type, current: Any) -> Any:
        node = value.node
        if value.has_value() and node is not NULL and not isinstance(node, Mapping):
            raise _shape_error(value, "mapping")

        instance = current if current is not None else _zero_record(tp)
        marker = id(instance)
        if marker in self._visiting:
            raise CycleError(value.key)

        self._visiting.add(marker)
        try:
            for field in record_fields(tp):
                child = value.get(field.key)
                if not child.has_value() and field.default_text is not None:
                    child = child.with_default(field.default_text)
                existing = getattr(instance, field.attr, None)
                setattr(instance, field.attr, self._decode(child, field.hint, existing))
        finally:
            self._visiting.discard(marker)

        return instance
