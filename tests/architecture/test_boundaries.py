from pytest_archon import archrule


def test_primitives_isolation() -> None:
    """
    Primitives are the lowest level.
    They must not import any other tasktrack layer.
    """
    (
        archrule("primitives_isolation")
        .match("tasktrack.primitives*")
        .should_not_import("tasktrack.domain*")
        .should_not_import("tasktrack.specifications*")
        .should_not_import("tasktrack.uow*")
        .should_not_import("tasktrack.cqrs*")
        .should_not_import("tasktrack.ports*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_domain_isolation() -> None:
    """
    Domain layer should be self-contained.
    It must not know how it is queried, stored or dispatched.
    """
    (
        archrule("domain_isolation")
        .match("tasktrack.domain*")
        .should_not_import("tasktrack.specifications*")
        .should_not_import("tasktrack.uow*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_specifications_are_store_agnostic() -> None:
    """
    Specifications produce filter expressions; translating them belongs to
    the store adapters.
    """
    (
        archrule("specifications_store_agnostic")
        .match("tasktrack.specifications*")
        .should_not_import("sqlalchemy*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.uow*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_cqrs_layering() -> None:
    """
    Buses and the mediator only route; they must not reach into storage or
    the task application.
    """
    (
        archrule("cqrs_layering")
        .match("tasktrack.cqrs*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.uow*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_uow_layering() -> None:
    """
    The Unit of Work drives the store session port, never a concrete store.
    """
    (
        archrule("uow_layering")
        .match("tasktrack.uow*")
        .should_not_import("sqlalchemy*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_ports_layering() -> None:
    """
    Ports (interfaces) should not depend on Adapters (implementations).
    """
    (
        archrule("ports_layering")
        .match("tasktrack.ports*")
        .should_not_import("tasktrack.adapters*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_adapters_isolation() -> None:
    """
    In-memory adapters implement ports; they must not depend on the SQL
    store or the application that wires them.
    """
    (
        archrule("adapters_isolation")
        .match("tasktrack.adapters*")
        .should_not_import("tasktrack.persistence*")
        .should_not_import("tasktrack.application*")
        .check("tasktrack")
    )


def test_persistence_layering() -> None:
    """
    Persistence can import the domain, specifications and ports but not the
    application layer.
    """
    (
        archrule("persistence_layering")
        .match("tasktrack.persistence*")
        .should_not_import("tasktrack.application*")
        .should_not_import("tasktrack.adapters*")
        .check("tasktrack")
    )
