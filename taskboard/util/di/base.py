"""Provider base class and component names."""

from typing import ClassVar, Literal, get_args

from dishka import Provider

# Infrastructure components that tests can swap for in-memory doubles
Component = Literal["identity", "persistence"]
COMPONENTS: frozenset[Component] = frozenset(get_args(Component))


class ProviderBase(Provider):
    """Common base of every provider in the container.

    A mockable component is an abstract subclass that sets
    ``__mock_component__``; its production and test implementations subclass
    it in turn and are told apart by ``__is_mock__``. Concrete providers
    (config, domain, application) leave both attributes unset.
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
