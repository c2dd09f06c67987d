"""Web API 测试"""

import threading
import time

import numpy as np
import pytest
from fastapi.testclient import TestClient

from core import algorithms
from core.simulation import Simulation
from web.app import app
from web.routers.simulation import get_simulation


@pytest.fixture
def client():
    """每个测试用一个独立、固定种子的模拟实例"""
    sim = Simulation(rng=np.random.default_rng(0))
    app.dependency_overrides[get_simulation] = lambda: sim
    yield TestClient(app)
    app.dependency_overrides.clear()


def start(client, **kwargs):
    payload = {"num_arms": 3, "num_rounds": 3, "reward_family": "binary",
               "algorithms": ["greedy", "thompson"]}
    payload.update(kwargs)
    return client.post("/api/simulation/start", json=payload)


class TestSimulationApi:
    """单次模拟接口测试"""

    def test_index(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "/api/simulation/start" in resp.json()["endpoints"]

    def test_idle_state(self, client):
        data = client.get("/api/simulation/state").json()
        assert data["state"] == "idle"
        assert data["agents"] == []

    def test_start(self, client):
        resp = start(client)
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "running"
        assert [a["name"] for a in data["agents"]] == ["human", "greedy", "thompson"]

    def test_choose_and_complete(self, client):
        start(client)
        for i in range(3):
            data = client.post("/api/simulation/choose", json={"arm": 1}).json()
            assert data["current_round"] == i + 1
        assert data["is_complete"]
        assert len(data["performance"]) == 3
        assert data["agents"][0]["last_choice"] == 1

        resp = client.post("/api/simulation/choose", json={"arm": 1})
        assert resp.status_code == 409

    def test_invalid_arm(self, client):
        start(client)
        resp = client.post("/api/simulation/choose", json={"arm": 5})
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidArmIndex"
        assert client.get("/api/simulation/state").json()["current_round"] == 0

    def test_negative_arm_rejected(self, client):
        start(client)
        resp = client.post("/api/simulation/choose", json={"arm": -1})
        assert resp.status_code == 422

    def test_invalid_config(self, client):
        assert start(client, num_arms=0).status_code == 422
        assert start(client, reward_family="poisson").status_code == 422
        assert start(client, algorithms=["softmax"]).status_code == 422

    def test_stop(self, client):
        start(client)
        data = client.post("/api/simulation/stop").json()
        assert data["state"] == "idle"
        assert data["notification"]
        assert client.post("/api/simulation/stop").status_code == 409

    def test_summary(self, client):
        start(client, reward_family="continuous")
        client.post("/api/simulation/choose", json={"arm": 0})
        items = client.get("/api/simulation/summary").json()
        assert [item["agent"] for item in items] == ["human", "greedy", "thompson"]
        assert all(item["success_rate"] is None for item in items)

    def test_summary_when_idle(self, client):
        assert client.get("/api/simulation/summary").status_code == 409

    def test_overlapping_choices_play_one_round(self, client, monkeypatch):
        """两个请求同时提交选择，只有一个能完成最后一轮"""

        def slow_greedy(stats, config, rng):
            time.sleep(0.2)
            return algorithms.greedy(stats, config, rng)

        monkeypatch.setitem(algorithms.ALGORITHMS, "greedy", slow_greedy)
        start(client, num_rounds=1, algorithms=["greedy"])

        codes = []

        def choose():
            codes.append(client.post("/api/simulation/choose", json={"arm": 0}).status_code)

        threads = [threading.Thread(target=choose) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(codes) == [200, 409]
        data = client.get("/api/simulation/state").json()
        assert data["current_round"] == 1
        assert len(data["performance"]) == 1
        assert data["agents"][0]["score"] <= 1


class TestComparisonApi:
    """对比实验接口测试"""

    def test_compare(self, client):
        resp = client.post("/api/simulation/compare", json={
            "algorithms": ["greedy", "ucb"], "k": 3, "steps": 10, "n_runs": 2,
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["agents"] == ["human", "greedy", "ucb"]
        assert len(data["cumulative"]["ucb"]) == 10
        assert len(data["summary"]) == 3

    def test_compare_validation(self, client):
        resp = client.post("/api/simulation/compare", json={"algorithms": []})
        assert resp.status_code == 422
