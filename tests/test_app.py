import unittest

from fastapi.testclient import TestClient
from fakes import MemoryGradeStore, scenario_assignments

from pointsplannr.app import app, get_grade_store


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.store = MemoryGradeStore({"u1": scenario_assignments()})
        app.dependency_overrides[get_grade_store] = lambda: self.store
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_calculate(self):
        response = self.client.post(
            "/points/calculate",
            json={
                "assignments": [
                    {"subject_id": "m", "subject_name": "Maths", "level": "Higher", "grade": "H1"},
                    {"subject_id": "e", "subject_name": "English", "level": "Ordinary", "grade": None},
                ]
            },
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["all_subjects_total"], 162)
        self.assertEqual(body["breakdown"][1]["grade"], "O3")
        self.assertFalse(body["show_best6"])

    def test_calculate_rejects_unknown_level(self):
        response = self.client.post(
            "/points/calculate",
            json={"assignments": [{"subject_id": "m", "subject_name": "Maths", "level": "Advanced"}]},
        )
        self.assertEqual(response.status_code, 422)

    def test_step_and_convert(self):
        body = self.client.post("/grades/step", json={"grade": "H2", "direction": "up"}).json()
        self.assertEqual(body, {"grade": "H1", "at_boundary": True})
        body = self.client.post("/grades/convert", json={"grade": "O5", "target_level": "Higher"}).json()
        self.assertEqual(body, {"grade": "H5"})
        response = self.client.post("/grades/convert", json={"grade": "O5", "target_level": "Foundation"})
        self.assertEqual(response.status_code, 422)

    def test_points_requires_user(self):
        self.assertEqual(self.client.get("/points").status_code, 401)

    def test_points_for_user(self):
        body = self.client.get("/points", headers={"x-user-id": "u1"}).json()
        self.assertEqual(body["best6_total"], 378)
        self.assertTrue(body["show_best6"])
        self.assertNotIn("geography", body["best6_subjects"])

    def test_experiment_does_not_save(self):
        response = self.client.post(
            "/points/experiment",
            json={"overrides": {"irish": "Higher"}},
            headers={"x-user-id": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["all_subjects_total"], 378 - 28 + 66)
        self.assertEqual(self.store.writes, [])

    def test_change_grade(self):
        response = self.client.patch(
            "/subjects/english/grade",
            json={"direction": "down"},
            headers={"x-user-id": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.writes, [("u1", "english", "H4")])
        self.assertEqual(response.json()["all_subjects_total"], 378 - 77 + 66)

    def test_change_grade_unknown_subject(self):
        response = self.client.patch(
            "/subjects/physics/grade",
            json={"direction": "up"},
            headers={"x-user-id": "u1"},
        )
        self.assertEqual(response.status_code, 404)

    def test_writer_key_error_is_not_reported_as_unknown_subject(self):
        def broken_write(uid, subject_id, grade):
            raise KeyError("$id")

        self.store.update_grade = broken_write
        with self.assertRaises(KeyError):
            self.client.patch(
                "/subjects/english/grade",
                json={"direction": "up"},
                headers={"x-user-id": "u1"},
            )

    def test_change_grade_write_failure(self):
        self.store.fail_writes = True
        response = self.client.patch(
            "/subjects/english/grade",
            json={"direction": "up"},
            headers={"x-user-id": "u1"},
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Failed to save grade")


if __name__ == "__main__":
    unittest.main()
