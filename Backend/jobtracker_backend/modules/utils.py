import inspect
import time
import typing
from dataclasses import is_dataclass, asdict, fields
from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar


def current_millis() -> int:
    """Wall-clock time as epoch milliseconds"""
    return time.time_ns() // 1_000_000


def to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are read as local time."""
    return int(value.timestamp() * 1000)


def from_millis(value: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to a datetime in ``tz`` (local time when None)."""
    return datetime.fromtimestamp(value / 1000, tz=tz)


def to_jsonable(obj: Any) -> Any:
    """Recursively turn dataclasses into plain dicts with enum values and string keys"""
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {to_jsonable(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.value
    return obj


T = TypeVar('T')


def _unwrap_optional(field_type: Any) -> tuple[Any, bool]:
    if typing.get_origin(field_type) is typing.Union:
        args = [a for a in typing.get_args(field_type) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return field_type, False


def _decode_value(field_type: Any, value: Any) -> Any:
    field_type, optional = _unwrap_optional(field_type)

    if value is None or (optional and value == ''):
        return None
    # Handle nested dataclasses
    if is_dataclass(field_type) and isinstance(value, dict):
        return decode_dataclass(field_type, value)
    # Handle enums, tolerating unknown names where the enum provides a fallback
    if isinstance(field_type, type) and issubclass(field_type, Enum):
        if isinstance(value, field_type):
            return value
        from_string = getattr(field_type, 'from_string', None)
        return from_string(value) if from_string else field_type(value)
    if field_type is int and isinstance(value, (str, float)):
        return int(float(value))
    if field_type is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def decode_dataclass(cls: Type[T], data: Dict[str, Any]) -> T:
    """Recursively decode dictionary into dataclass instance"""
    if not is_dataclass(cls):
        return data

    fieldtypes = typing.get_type_hints(cls)
    known = {f.name for f in fields(cls)}
    decoded_data = {}

    for key, value in data.items():
        if key not in known:
            continue
        decoded_data[key] = _decode_value(fieldtypes[key], value)

    return cls(**decoded_data)


def block_base_methods(blocked_methods=None, allowed_methods=None):
    """
    Decorator to manage access to base class methods.
    Args:
        blocked_methods: List of method names to block. If None and allowed_methods is None, blocks all base methods.
        allowed_methods: List of method names to allow. Takes precedence over blocked_methods.
    """
    # Handle case when decorator is used without parentheses
    if isinstance(blocked_methods, type):
        return _block_base_methods(blocked_methods, None, None)

    def decorator(cls):
        return _block_base_methods(cls, blocked_methods, allowed_methods)

    return decorator


def _block_base_methods(cls, blocked_methods, allowed_methods):
    """Implementation of the decorator logic"""
    original_getattribute = cls.__getattribute__

    # Get all base classes in the inheritance chain
    def get_all_bases(c):
        bases = set()
        for base in c.__bases__:
            bases.add(base)
            bases.update(get_all_bases(base))
        return bases

    base_classes = get_all_bases(cls)

    all_base_methods = set()
    for base in base_classes:
        all_base_methods.update(
            name for name, attr in base.__dict__.items()
            if callable(attr) and not name.startswith('_')
        )

    if allowed_methods is not None:
        blocked_methods = all_base_methods - set(allowed_methods)
    elif blocked_methods is not None:
        blocked_methods = set(blocked_methods)
    else:
        blocked_methods = all_base_methods

    def __getattribute__(self, name):
        if name.startswith('_'):
            return original_getattribute(self, name)

        attr = original_getattribute(self, name)

        # Calls made from the instance's own methods are always allowed
        frame = inspect.currentframe()
        is_internal = frame.f_back.f_locals.get('self', None) is self

        if not is_internal:
            is_base_method = any(hasattr(base, name) for base in base_classes)
            if (callable(attr) and
                    is_base_method and
                    name in blocked_methods and
                    name not in cls.__dict__):
                raise AttributeError(
                    f"Cannot call base class method '{name}' directly"
                )

        return attr

    cls.__getattribute__ = __getattribute__
    cls._blocked_methods = blocked_methods
    return cls
