"""
API tests for the retail pricing endpoints.
"""
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from retail_pricing.api.main import app


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_root(client):
    assert client.get("/").json()["status"] == "online"


def test_calculate_with_camel_case_record(client):
    response = client.post("/calculate", json={
        "configuration": {"strategy": "percentage_markup", "markupPercentage": 25},
        "primaryQuote": {"vendorId": "v1", "cost": "$10.00"},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["price"] == "12.50"
    assert data["margin_percent"] == "20.00"
    assert data["strategy_used"] == "percentage_markup"


def test_calculate_with_competing_quotes(client):
    response = client.post("/calculate", json={
        "configuration": {"strategy": "msrp", "use_cross_vendor_fallback": True},
        "primary_quote": {"vendor_id": "primary", "cost": 20},
        "quotes": [
            {"vendor_id": "a", "msrp": "29.99"},
            {"vendor_id": "b", "msrp": 34.99},
        ],
    })
    assert response.status_code == 200
    assert response.json()["price"] == "34.99"


def test_calculate_without_price(client):
    response = client.post("/calculate", json={
        "configuration": {"strategy": "percentage_markup"},
        "primaryQuote": {"vendorId": "v1", "cost": "N/A"},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["price"] is None
    assert data["explanation"] == "Price calculation requires configuration"


def test_calculate_with_oversized_cost(client):
    response = client.post("/calculate", json={
        "configuration": {"strategy": "percentage_markup", "markupPercentage": 20},
        "primaryQuote": {"vendorId": "v1", "cost": "100000000000000000000000000"},
    })
    assert response.status_code == 200
    assert response.json()["price"] is None


def test_invalid_strategy_is_rejected(client):
    response = client.post("/calculate", json={
        "configuration": {"strategy": "bogus"},
        "primaryQuote": {"vendorId": "v1", "cost": "10"},
    })
    assert response.status_code == 422


def test_validate_configuration(client):
    response = client.post("/configurations/validate", json={
        "strategy": "targeted_margin", "targetMarginPercentage": 100,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["errors"]


def test_strategies(client):
    data = client.get("/strategies").json()
    assert {s["value"] for s in data["strategies"]} == {
        "msrp", "map", "percentage_markup", "targeted_margin", "premium_over_map", "discount_to_msrp",
    }


def test_rounding_examples(client):
    data = client.get("/rounding/examples").json()
    assert data["price"] == "24.67"
    assert data["examples"]["down_99"] == "23.99"

    data = client.get("/rounding/examples", params={"price": "10.01"}).json()
    assert data["examples"]["up_dollar"] == "11.00"

    assert client.get("/rounding/examples", params={"price": "-1"}).status_code == 400
    assert client.get("/rounding/examples", params={"price": "1e30"}).status_code == 400
