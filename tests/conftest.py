from __future__ import annotations

from datetime import date

import pytest
from depositlab.core.models import Funder, Investment


@pytest.fixture
def abc_investment() -> Investment:
    """500,000 at 1.2 % per month for 6 months from 2025-01-15."""
    return Investment(
        id="abc",
        source="ABC",
        amount=500_000,
        rate=1.2,
        start_date=date(2025, 1, 15),
        duration=6,
        ticket_number="1140715-ABC50(1.2%)",
        order=0,
    )


@pytest.fixture
def pooled_investment() -> Investment:
    """Two funders pooling 500,000 at 1.0 % for 12 months from 2025-03-01."""
    return Investment(
        id="xyz",
        source="XYZ",
        amount=500_000,
        rate=1.0,
        start_date=date(2025, 3, 1),
        duration=12,
        intro_fee_rate=1.0,
        ticket_number="1150301-XYZ50(1%)",
        funders=[
            Funder(id="f1", name="王", amount=300_000, ticket_number="1150301-王30(1%)"),
            Funder(id="f2", name="李", amount=200_000, ticket_number="1150301-李20(1%)"),
        ],
        order=1,
    )
