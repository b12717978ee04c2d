import unittest
from unittest.mock import MagicMock

from appwrite.exception import AppwriteException

from pointsplannr.core.scales import Level
from pointsplannr.services.appwrite_service import AppwriteService
from pointsplannr.services.protocols import GradeStoreError


def _service(documents):
    db = MagicMock()
    db.list_documents.side_effect = lambda database_id, collection_id, queries=None: {
        "documents": documents.get(collection_id, [])
    }
    service = AppwriteService(
        endpoint="https://appwrite.test/v1",
        project_id="project",
        api_key="key",
        database_id="db",
        subjects_collection_id="subjects",
        user_subjects_collection_id="user_subjects",
        db=db,
    )
    return service, db


class AppwriteServiceTests(unittest.TestCase):
    def test_missing_settings(self):
        with self.assertRaises(GradeStoreError):
            AppwriteService("", "project", "key", "db", "subjects", "user_subjects", db=MagicMock())

    def test_list_assignments_joins_subjects(self):
        service, _ = _service(
            {
                "user_subjects": [
                    {"$id": "us1", "user_id": "u1", "subject_id": "s1", "grade": "H2"},
                    {"$id": "us2", "user_id": "u1", "subject_id": "s2", "grade": None},
                    {"$id": "us3", "user_id": "u1", "subject_id": "gone", "grade": "H1"},
                ],
                "subjects": [
                    {"$id": "s1", "name": "Mathematics", "level": "Higher"},
                    {"$id": "s2", "name": "Irish", "level": "Foundation"},
                ],
            }
        )
        with self.assertLogs("pointsplannr.services.appwrite_service", level="WARNING"):
            rows = service.list_assignments("u1")
        self.assertEqual([row.subject_id for row in rows], ["s1", "s2"])
        self.assertEqual(rows[0].level, Level.HIGHER)
        self.assertEqual(rows[0].grade, "H2")
        self.assertIsNone(rows[1].grade)

    def test_update_grade(self):
        service, db = _service(
            {
                "user_subjects": [{"$id": "us1", "user_id": "u1", "subject_id": "s1", "grade": "H2"}],
                "subjects": [{"$id": "s1", "name": "Mathematics", "level": "Higher"}],
            }
        )
        service.update_grade("u1", "s1", "H1")
        db.update_document.assert_called_once_with("db", "user_subjects", "us1", {"grade": "H1"})

    def test_update_grade_rejects_invalid_grade(self):
        service, db = _service(
            {
                "user_subjects": [{"$id": "us1", "user_id": "u1", "subject_id": "s1", "grade": "H2"}],
                "subjects": [{"$id": "s1", "name": "Mathematics", "level": "Higher"}],
            }
        )
        with self.assertRaises(GradeStoreError):
            service.update_grade("u1", "s1", "O1")
        db.update_document.assert_not_called()

    def test_unassigned_subject(self):
        service, _ = _service({})
        with self.assertRaises(GradeStoreError):
            service.get_grade("u1", "s1")

    def test_appwrite_errors_are_wrapped(self):
        service, db = _service(
            {
                "user_subjects": [{"$id": "us1", "user_id": "u1", "subject_id": "s1", "grade": "H2"}],
                "subjects": [{"$id": "s1", "name": "Mathematics", "level": "Higher"}],
            }
        )
        db.update_document.side_effect = AppwriteException("boom", 500)
        with self.assertRaises(GradeStoreError) as ctx:
            service.update_grade("u1", "s1", "H3")
        self.assertIsInstance(ctx.exception.__cause__, AppwriteException)


if __name__ == "__main__":
    unittest.main()
