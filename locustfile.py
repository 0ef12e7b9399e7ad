"""
Locust load tests for the Agency Finance API.

Install: pip install locust
Run: locust -f locustfile.py --host=http://127.0.0.1:5050

For headless: locust -f locustfile.py --host=http://127.0.0.1:5050 \
    --users 10 --spawn-rate 2 --run-time 1m --headless
"""

import os
from locust import HttpUser, task, between


class AgencyFinanceUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        """Login when test credentials are configured."""
        self.token = None
        self.year = int(os.getenv("LOCUST_YEAR", "2025"))
        self.month = int(os.getenv("LOCUST_MONTH", "1"))
        if os.getenv("LOCUST_AUTH_EMAIL") and os.getenv("LOCUST_AUTH_PASSWORD"):
            r = self.client.post(
                "/api/auth/login",
                json={
                    "email": os.getenv("LOCUST_AUTH_EMAIL"),
                    "password": os.getenv("LOCUST_AUTH_PASSWORD"),
                },
            )
            if r.status_code == 200 and "access_token" in r.json():
                self.token = r.json()["access_token"]

    def _headers(self):
        h = {"Content-Type": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    @task(10)
    def health(self):
        self.client.get("/health")

    @task(6)
    def billing_matrix(self):
        self.client.get(
            f"/api/billing/matrix?year={self.year}&month={self.month}",
            headers=self._headers(),
            name="/api/billing/matrix",
        )

    @task(4)
    def pl_summary(self):
        self.client.get(
            f"/api/pl/summary/{self.year}", headers=self._headers(), name="/api/pl/summary"
        )

    @task(3)
    def fee_preview(self):
        self.client.post(
            "/api/fees/preview",
            json={"investment": 12000, "platform_count": 2},
            headers=self._headers(),
        )

    @task(2)
    def dashboard(self):
        self.client.get(
            f"/api/dashboard/kpis/{self.year}", headers=self._headers(), name="/api/dashboard/kpis"
        )

    @task(1)
    def metrics(self):
        self.client.get("/admin/metrics", headers=self._headers())
