"""
Shared fixtures: a small three-market student-housing portfolio.
"""

import pytest

from portfolio.market_engine import (
    CompetitorProperty,
    Coordinate,
    SubjectProperty,
    University,
)
from portfolio.utils.config import Config


@pytest.fixture
def config():
    """Deterministic config, independent of the environment."""
    return Config(
        fallback_radius_m=5000.0,
        national_padding=0.10,
        market_padding=0.20,
        min_span_degrees=0.01,
        national_bounds=(24.396308, -124.848974, 49.384358, -66.885444),
    )


@pytest.fixture
def make_subject():
    """Factory fixture for subject properties."""
    def _create(
        id: str,
        name: str = "Subject",
        address: str = "1 Main St, Sacramento, CA 95819",
        latitude: float = 38.5568,
        longitude: float = -121.4929,
        market: str = None,
        total_units: int = 100,
        total_beds: int = 250,
        distance_to_campus: float = 0.5,
        average_rent: float = 1200.0,
        occupancy_rate: float = 0.95,
        prelease_rate: float = 0.70,
    ) -> SubjectProperty:
        return SubjectProperty(
            id=id,
            name=name,
            address=address,
            coordinates=Coordinate(latitude, longitude),
            market=market,
            total_units=total_units,
            total_beds=total_beds,
            distance_to_campus=distance_to_campus,
            average_rent=average_rent,
            occupancy_rate=occupancy_rate,
            prelease_rate=prelease_rate,
        )
    return _create


@pytest.fixture
def make_competitor():
    """Factory fixture for competitor properties."""
    def _create(
        id: str,
        name: str = "Competitor",
        address: str = "2 Main St, Sacramento, CA 95819",
        latitude: float = 38.5589,
        longitude: float = -121.4221,
        market: str = None,
        total_units: int = 150,
        total_beds: int = 385,
        distance_to_campus: float = 0.1,
        average_rent: float = None,
        occupancy_rate: float = None,
        prelease_rate: float = None,
        associated_subject_property_id: str = None,
        competitive_set_id: str = "",
    ) -> CompetitorProperty:
        return CompetitorProperty(
            id=id,
            name=name,
            address=address,
            coordinates=Coordinate(latitude, longitude),
            market=market,
            total_units=total_units,
            total_beds=total_beds,
            distance_to_campus=distance_to_campus,
            average_rent=average_rent,
            occupancy_rate=occupancy_rate,
            prelease_rate=prelease_rate,
            associated_subject_property_id=associated_subject_property_id,
            competitive_set_id=competitive_set_id,
        )
    return _create


@pytest.fixture
def make_university():
    """Factory fixture for universities."""
    def _create(
        id: str,
        name: str = "State University",
        address: str = "6000 J St, Sacramento, CA 95819",
        latitude: float = 38.5610,
        longitude: float = -121.4240,
        market: str = None,
        total_enrollment: int = 31000,
    ) -> University:
        return University(
            id=id,
            name=name,
            address=address,
            coordinates=Coordinate(latitude, longitude),
            market=market,
            total_enrollment=total_enrollment,
            undergraduate_enrollment=int(total_enrollment * 0.87),
            graduate_enrollment=total_enrollment - int(total_enrollment * 0.87),
        )
    return _create


@pytest.fixture
def portfolio(make_subject, make_competitor, make_university):
    """
    Three subjects in Sacramento, Fayetteville and Reno, two competitors
    per market, and one university in Sacramento.
    """
    return [
        make_subject(
            "P641240", name="Academy 65",
            address="1325 65th St, Sacramento, CA 95819",
            latitude=38.5568, longitude=-121.4929,
            total_units=90, total_beds=225, distance_to_campus=0.8,
            average_rent=1200, occupancy_rate=0.95, prelease_rate=0.72,
        ),
        make_subject(
            "P518041", name="The Academy at Frisco",
            address="413 N. West Ave. Fayetteville, AR 72701",
            market="Fayetteville",
            latitude=36.0679, longitude=-94.1737,
            total_units=180, total_beds=495, distance_to_campus=0.5,
            average_rent=1100, occupancy_rate=0.97, prelease_rate=0.68,
        ),
        make_subject(
            "P1197887", name="The Dean Reno",
            address="1475 N. Virginia Street, Reno, NV 89503",
            latitude=39.5296, longitude=-119.8138,
            total_units=200, total_beds=600, distance_to_campus=0.2,
            average_rent=1400, occupancy_rate=0.98, prelease_rate=0.85,
        ),
        make_competitor(
            "C641240-001", name="Hornet Commons",
            address="3001 State University Dr, Sacramento, CA 95826",
            latitude=38.5589, longitude=-121.4221,
            distance_to_campus=0.1,
            average_rent=1250, occupancy_rate=0.96, prelease_rate=0.75,
            associated_subject_property_id="P641240",
        ),
        make_competitor(
            "C641240-002", name="Sol at Sacramento",
            address="7000 Folsom Blvd, Sacramento, CA 95826",
            latitude=38.5520, longitude=-121.4300,
            distance_to_campus=1.2,
            associated_subject_property_id="P641240",
        ),
        make_competitor(
            "C518041-001", name="The Retreat at Fayetteville",
            address="1369 W Stadium Dr., Fayetteville, AR 72701",
            latitude=36.0673, longitude=-94.1891,
            distance_to_campus=0.8,
            average_rent=1150, occupancy_rate=0.94, prelease_rate=0.70,
            associated_subject_property_id="P518041",
        ),
        make_competitor(
            "C518041-002", name="Eleven85",
            address="1185 W Cleveland St, Fayetteville, AR 72701",
            latitude=36.0720, longitude=-94.1830,
            distance_to_campus=0.6,
            average_rent=1050, occupancy_rate=0.92,
            associated_subject_property_id="P518041",
        ),
        make_competitor(
            "C1197887-001", name="Park Place",
            address="1651 N Virginia St, Reno, NV 89503",
            latitude=39.5297, longitude=-119.8140,
            distance_to_campus=0.3,
            average_rent=1350, occupancy_rate=0.95, prelease_rate=0.73,
            associated_subject_property_id="P1197887",
        ),
        make_competitor(
            "C1197887-002", name="Canyon Flats",
            address="500 Canyon Flats Dr, Reno, NV 89503",
            latitude=39.5400, longitude=-119.8200,
            distance_to_campus=0.9,
            average_rent=1300, occupancy_rate=0.90, prelease_rate=0.65,
            associated_subject_property_id="P1197887",
        ),
        make_university(
            "u1", name="Sacramento State University",
            address="6000 J St, Sacramento, CA 95819",
            latitude=38.5610, longitude=-121.4240,
        ),
    ]
