"""
Build-time annotations for component modules.

Component modules import these names for their decorators:

    from spire.annotations import Component, Listen, Prop, State

    @Component(tag="my-button", styleUrl="button.scss")
    class MyButton:
        @Prop
        def label(self) -> str:
            return "OK"

The compiler reads the decorators and strips them (and this import) from
the compiled output. At runtime they do nothing, so an uncompiled module
still imports and runs.
"""


def _passthrough(target=None, *args, **kwargs):
    if callable(target) and not args and not kwargs:
        return target

    def decorate(member):
        return member

    return decorate


def Component(**options):
    """Declare a component class (tag, styleUrl/styleUrls, shadow)."""
    return _passthrough(**options)


def Prop(target=None):
    """Declare an observed attribute."""
    return _passthrough(target)


def State(target=None):
    """Declare an internal state property."""
    return _passthrough(target)


def Listen(event_name, **options):
    """Declare an event listener (capture, passive, enabled)."""
    return _passthrough(None, event_name, **options)
