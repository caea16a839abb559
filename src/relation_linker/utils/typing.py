import typing

T = typing.TypeVar("T")


def assert_type(class_: typing.Type[T], value: typing.Any) -> T:
    assert isinstance(value, class_), f"{value!r} is not an instance of {class_.__name__}"
    return value
