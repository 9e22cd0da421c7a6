"""Reference patterns — auto-registered on import, in evaluation order."""

from sf_registry.references.patterns import (
    markup_component,  # noqa: F401
    script_component,  # noqa: F401
    script_class,  # noqa: F401
    script_resource,  # noqa: F401
    class_mention,  # noqa: F401
)
