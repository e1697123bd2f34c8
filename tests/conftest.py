import pytest

from wedding_seating.models import Guest, RelationshipKind, RelationshipLink, Table


@pytest.fixture
def family_guests():
    """G1 and G2 are family, G3 and G4 have no relationships."""
    return [
        Guest("G1", "Grace", relationships=(RelationshipLink("G2", RelationshipKind.FAMILY),)),
        Guest("G2", "George", relationships=(RelationshipLink("G1", RelationshipKind.FAMILY),)),
        Guest("G3", "Hana"),
        Guest("G4", "Ivan"),
    ]


@pytest.fixture
def two_small_tables():
    return [Table("T1", 2), Table("T2", 2)]
