
class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_is_public(self, api_client):
        assert api_client.get("/health").status_code == 200

    def test_health_check_reports_delivery_config(self, client, settings):
        data = client.get("/health").json()
        delivery = data["services"]["delivery_config"]
        assert delivery["status"] == "up"
        assert delivery["time_zone"] == settings.TIME_ZONE
        assert delivery["drivers"] == ["3rd-party", "driver-1", "driver-2"]

    def test_missing_driver_settings_degrade(self, client, settings):
        settings.DELIVERY_DRIVERS = {"driver-1": {"name": "Budi"}}
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
