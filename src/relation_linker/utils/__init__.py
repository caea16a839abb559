from .typing import assert_type  # noqa
