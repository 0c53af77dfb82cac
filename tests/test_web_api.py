"""
Tests for the JSON API

Uses FastAPI's TestClient against an app built with an isolated
reports directory.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from utils.config import Config
from web.app import create_app


AS_OF = "2024-06-15"


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def client(tmp_path):
    app = create_app(Config(reports_dir=str(tmp_path / "reports")))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def transactions():
    """Five 2019 sales at 1200 psf and five 2024 sales at 1500 psf."""
    txs = []
    for month in range(1, 6):
        txs.append({"date": f"2019-0{month}", "area": 1000, "psf": 1200, "floor_range": "01-05", "beds": "3"})
        txs.append({"date": f"2024-0{month}", "area": 1000, "psf": 1500, "floor_range": "11-15", "beds": "3"})
    return txs


# =============================================================================
# Health
# =============================================================================

class TestHealth:

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_api_health(self, client):
        data = client.get("/api/health").json()

        assert data["status"] == "healthy"
        assert data["engine_version"] == "1.0"

    def test_reports_dir_created_on_startup(self, tmp_path):
        reports_dir = tmp_path / "startup" / "reports"
        app = create_app(Config(reports_dir=str(reports_dir)))

        assert not reports_dir.exists()
        with TestClient(app):
            assert reports_dir.is_dir()


# =============================================================================
# Engine Endpoints
# =============================================================================

class TestEngineEndpoints:

    def test_cagr(self, client, transactions):
        response = client.post("/api/cagr", json={"transactions": transactions})

        assert response.status_code == 200
        data = response.json()
        assert data["cagr"] == pytest.approx(4.56, abs=0.01)
        assert data["low_conf"] is False
        assert len(data["annual_avg"]) == 6

    def test_cagr_with_filters(self, client, transactions):
        response = client.post("/api/cagr", json={
            "transactions": transactions,
            "filters": {"year_from": 2024},
        })

        assert response.json()["cagr"] is None

    def test_invalid_records_are_dropped(self, client, transactions):
        bad = {"date": "2024", "area": 1000, "psf": 1500}

        response = client.post("/api/cagr", json={"transactions": transactions + [bad]})

        assert response.json()["total_n"] == 10

    def test_malformed_dates_are_dropped(self, client, transactions):
        bad = [
            {"date": "2024/01", "area": 1000, "psf": 1500},
            {"date": "2024-xx", "area": 1000, "psf": 1500},
        ]

        response = client.post("/api/valuation", json={
            "transactions": transactions + bad,
            "target_area": 1000,
            "as_of": AS_OF,
        })

        assert response.status_code == 200
        assert response.json()["valuation"]["total_comparables"] == 10

    def test_floor_premiums(self, client, transactions):
        data = client.post("/api/floor-premiums", json={"transactions": transactions}).json()

        assert [b["range"] for b in data["bands"]] == ["01-05", "11-15"]
        assert data["bands"][1]["premium"] == 25.0
        assert data["thin_bands"] == []

    def test_estimate(self, client, transactions):
        data = client.post("/api/estimate", json={
            "transactions": transactions,
            "target_area": 1000,
            "target_floor": "11-15",
            "as_of": AS_OF,
        }).json()

        assert data["as_of"] == AS_OF
        assert data["best_estimate"]["psf"] == 1500
        assert data["best_estimate"]["tier"] == 4
        assert data["best_estimate"]["period"] == "3M"
        assert len(data["tiers"]) == 4

    def test_valuation(self, client, transactions):
        data = client.post("/api/valuation", json={
            "transactions": transactions,
            "target_area": 1000,
            "as_of": AS_OF,
        }).json()

        valuation = data["valuation"]
        assert valuation["total_comparables"] == 10
        assert 0 <= valuation["confidence"] <= 100
        assert data["estimated_value"] == valuation["weighted_avg_psf"] * 1000

    def test_valuation_needs_three_comparables(self, client, transactions):
        data = client.post("/api/valuation", json={
            "transactions": transactions[:2],
            "target_area": 1000,
            "as_of": AS_OF,
        }).json()

        assert data["valuation"] is None
        assert data["estimated_value"] is None

    def test_negative_target_area(self, client, transactions):
        data = client.post("/api/estimate", json={
            "transactions": transactions,
            "target_area": -500,
            "as_of": AS_OF,
        }).json()

        assert data["best_estimate"] is None
        assert data["best_estimate_value"] is None

    def test_missing_target_area(self, client, transactions):
        response = client.post("/api/valuation", json={"transactions": transactions})

        assert response.status_code == 422

    def test_reference_projection(self, client, transactions):
        data = client.post("/api/reference-projection", json={
            "transactions": transactions,
            "reference": {"date": "2019-01", "area": 1000, "psf": 1200},
            "as_of": "2024-01-15",
        }).json()

        assert data["status"] == "adjusted"
        assert data["months_elapsed"] == 60
        assert data["adjusted_psf"] == 1500

    def test_invalid_reference(self, client, transactions):
        response = client.post("/api/reference-projection", json={
            "transactions": transactions,
            "reference": {"date": "2019-01", "area": 0, "psf": 1200},
        })

        assert response.status_code == 422

    def test_analysis(self, client, transactions):
        data = client.post("/api/analysis", json={
            "transactions": transactions,
            "target_area": 1000,
            "as_of": AS_OF,
            "filters": {"beds": "3"},
        }).json()

        assert data["filtered"] is True
        assert data["transaction_count"] == 10
        assert data["cagr"]["cagr"] == pytest.approx(4.56, abs=0.01)

    def test_investor_breakdown(self, client, transactions):
        data = client.post("/api/investor-breakdown", json={
            "transactions": transactions,
            "mode": "floor",
            "floor_bands": ["01-05", "11-15"],
        }).json()

        assert data["mode"] == "floor"
        assert [r["label"] for r in data["rows"]] == ["Floor 01-05", "Floor 11-15"]

    def test_investor_unknown_mode(self, client, transactions):
        response = client.post("/api/investor-breakdown", json={
            "transactions": transactions,
            "mode": "district",
        })

        assert response.status_code == 422


# =============================================================================
# Client Reports
# =============================================================================

class TestReports:

    def test_generate(self, client, transactions, tmp_path):
        response = client.post("/api/reports", json={
            "transactions": transactions,
            "target_area": 1000,
            "target_floor": "11-15",
            "as_of": AS_OF,
            "project": {"name": "Parc Vista", "district": "D23"},
            "client_name": "J. Tan",
            "sections": {"evidence": True, "floor_premium": True, "reference_tx": True},
            "reference": {"date": "2019-03", "area": 1000, "psf": 1200, "floor_range": "01-05"},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["pdf_url"] == f"/reports/{data['filename']}"
        assert (tmp_path / "reports" / data["filename"]).exists()

        report = data["report"]
        assert report["client_name"] == "J. Tan"
        assert report["yield_info"]["gross_yield"] == 2.8
        assert report["reference_tx"]["status"] == "adjusted"

    def test_generated_pdf_is_served(self, client, transactions):
        data = client.post("/api/reports", json={
            "transactions": transactions,
            "target_area": 1000,
            "project": {"name": "Parc Vista"},
        }).json()

        response = client.get(data["pdf_url"])

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
