import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient

from path_engine.api import MSG_FOUND, MSG_INVALID, MSG_NOT_FOUND, create_app


def grid_payload(text):
    names = {".": "EMPTY", "#": "OBSTACLE", "S": "START", "E": "END"}
    return [
        [{"row": r, "col": c, "type": names[ch]} for c, ch in enumerate(line)]
        for r, line in enumerate(text.split("\n"))
    ]


class TestAPI(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(create_app(cors_origins=["http://localhost:3000"]))

    def post(self, body):
        return self.client.post("/api/find-path", json=body)

    def test_ping(self):
        res = self.client.get("/api/ping")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"ping": "pong"})

    def test_path_found(self):
        res = self.post({
            "grid": grid_payload("S..\n.#.\n..E"),
            "start": {"row": 0, "col": 0},
            "end": {"row": 2, "col": 2},
        })
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["pathFound"])
        self.assertEqual(body["message"], MSG_FOUND)

        path = body["shortestPath"]
        self.assertEqual(len(path), 5)
        self.assertEqual(path[0], {"row": 0, "col": 0, "type": "START"})
        self.assertEqual(path[-1], {"row": 2, "col": 2, "type": "END"})

        steps = body["visualizationSteps"]
        self.assertEqual(steps[0]["action"], "visiting")
        self.assertEqual(steps[0]["visitedNodes"], [{"row": 0, "col": 0, "type": "VISITED"}])
        self.assertEqual(steps[1]["action"], "updating_distance")
        self.assertEqual(steps[1]["updatedDistances"], [{"row": 1, "col": 0, "distance": 1.0}])
        self.assertEqual(steps[-1]["action"], "path_found")
        self.assertTrue(all(n["type"] == "PATH" for n in steps[-1]["visitedNodes"]))

    def test_extra_fields_ignored(self):
        grid = grid_payload("SE")
        grid[0][1].update({"distance": 0, "visited": True, "previousNode": None})
        res = self.post({"grid": grid, "start": {"row": 0, "col": 0}, "end": {"row": 0, "col": 1}})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()["shortestPath"]), 2)

    def test_no_path(self):
        res = self.post({
            "grid": grid_payload("S#E"),
            "start": {"row": 0, "col": 0},
            "end": {"row": 0, "col": 2},
        })
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertFalse(body["pathFound"])
        self.assertEqual(body["message"], MSG_NOT_FOUND)
        self.assertEqual(body["shortestPath"], [])

    def test_missing_fields(self):
        res = self.post({"grid": grid_payload("SE"), "start": {"row": 0, "col": 0}})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["message"], MSG_INVALID)

        res = self.post({"grid": [], "start": {"row": 0, "col": 0}, "end": {"row": 0, "col": 1}})
        self.assertEqual(res.status_code, 400)

    def test_malformed_body_uses_error_envelope(self):
        res = self.post({
            "grid": grid_payload("SE"),
            "start": {"row": "x", "col": 0},
            "end": {"row": 0, "col": 1},
        })
        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertNotIn("detail", body)
        self.assertFalse(body["pathFound"])
        self.assertTrue(body["message"].startswith("Invalid request: "))
        self.assertIn("start", body["message"])

        grid = grid_payload("SE")
        grid[0][0]["type"] = ["START"]
        res = self.post({"grid": grid, "start": {"row": 0, "col": 0}, "end": {"row": 0, "col": 1}})
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["pathFound"])

    def test_ragged_rows(self):
        grid = grid_payload("S..\n.E")
        res = self.post({"grid": grid, "start": {"row": 0, "col": 0}, "end": {"row": 1, "col": 1}})
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.json()["pathFound"])

    def test_mislabelled_cell(self):
        grid = grid_payload("S.\n.E")
        grid[1][0]["row"] = 0
        res = self.post({"grid": grid, "start": {"row": 0, "col": 0}, "end": {"row": 1, "col": 1}})
        self.assertEqual(res.status_code, 400)

    def test_out_of_bounds(self):
        res = self.post({
            "grid": grid_payload("S.\n.E"),
            "start": {"row": 0, "col": 0},
            "end": {"row": 5, "col": 1},
        })
        self.assertEqual(res.status_code, 400)
        self.assertIn("out of bounds", res.json()["message"])

    def test_obstacle_endpoint(self):
        res = self.post({
            "grid": grid_payload("S#\n.E"),
            "start": {"row": 0, "col": 1},
            "end": {"row": 1, "col": 1},
        })
        self.assertEqual(res.status_code, 400)
        self.assertIn("obstacle", res.json()["message"])

    def test_cors(self):
        res = self.client.options("/api/find-path", headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        })
        self.assertEqual(res.headers.get("access-control-allow-origin"), "http://localhost:3000")


if __name__ == '__main__':
    unittest.main()
