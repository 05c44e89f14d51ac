"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold the rules that span several entities, such as an
    invitation and the profile it eventually produces.
    """

    pass
