import logging
from typing import Dict, List, Optional

from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.query import Query
from appwrite.services.databases import Databases

from pointsplannr.config.settings import settings
from pointsplannr.core.points import SubjectAssignment
from pointsplannr.core.scales import Level, is_valid_grade
from pointsplannr.services.protocols import GradeStoreError


logger = logging.getLogger(__name__)


class AppwriteService:
    """
    Grade store backed by two Appwrite collections: `subjects` (name, level)
    and `user_subjects` (user_id, subject_id, grade).
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        database_id: str,
        subjects_collection_id: str,
        user_subjects_collection_id: str,
        db: Optional[Databases] = None,
    ) -> None:
        if not endpoint:
            raise GradeStoreError("Missing APPWRITE_ENDPOINT in environment")
        if not project_id:
            raise GradeStoreError("Missing APPWRITE_PROJECT_ID in environment")
        if not api_key:
            raise GradeStoreError("Missing APPWRITE_API_KEY in environment")
        if not database_id:
            raise GradeStoreError("Missing APPWRITE_DATABASE_ID in environment")

        self.database_id = database_id
        self.subjects_collection_id = subjects_collection_id
        self.user_subjects_collection_id = user_subjects_collection_id

        if db is None:
            client = Client()
            client.set_endpoint(endpoint.rstrip("/"))
            client.set_project(project_id)
            client.set_key(api_key)
            db = Databases(client)
        self.db = db

    @classmethod
    def from_settings(cls) -> "AppwriteService":
        return cls(
            endpoint=settings.appwrite_endpoint,
            project_id=settings.appwrite_project_id,
            api_key=settings.appwrite_api_key,
            database_id=settings.appwrite_database_id,
            subjects_collection_id=settings.appwrite_subjects_collection_id,
            user_subjects_collection_id=settings.appwrite_user_subjects_collection_id,
        )

    def _list_documents(self, collection_id: str, queries: List[str]) -> List[Dict]:
        try:
            result = self.db.list_documents(self.database_id, collection_id, queries=queries)
            return list(result.get("documents", []))
        except AppwriteException as exc:
            raise GradeStoreError(str(exc)) from exc

    def _update_document(self, collection_id: str, document_id: str, data: Dict) -> Dict:
        try:
            return self.db.update_document(self.database_id, collection_id, document_id, data)
        except AppwriteException as exc:
            raise GradeStoreError(str(exc)) from exc

    def _find_first(self, collection_id: str, queries: List[str]) -> Optional[Dict]:
        docs = self._list_documents(collection_id, [*queries, Query.limit(1)])
        if not docs:
            return None
        return docs[0]

    def _user_subject(self, uid: str, subject_id: str) -> Dict:
        row = self._find_first(
            self.user_subjects_collection_id,
            [
                Query.equal("user_id", [uid]),
                Query.equal("subject_id", [subject_id]),
            ],
        )
        if not row:
            raise GradeStoreError(f"Subject {subject_id} is not assigned to this user.")
        return row

    def _subjects_by_id(self, subject_ids: List[str]) -> Dict[str, Dict]:
        if not subject_ids:
            return {}
        docs = self._list_documents(
            self.subjects_collection_id,
            [
                Query.equal("$id", subject_ids),
                Query.limit(len(subject_ids)),
            ],
        )
        return {doc["$id"]: doc for doc in docs}

    @staticmethod
    def _level(value: Optional[str]) -> Level:
        try:
            return Level(value)
        except ValueError:
            logger.warning("Unknown subject level %r, treating as Foundation", value)
            return Level.FOUNDATION

    def list_assignments(self, uid: str) -> List[SubjectAssignment]:
        rows = self._list_documents(
            self.user_subjects_collection_id,
            [
                Query.equal("user_id", [uid]),
                Query.order_asc("$createdAt"),
            ],
        )
        subjects = self._subjects_by_id([row["subject_id"] for row in rows])

        results: List[SubjectAssignment] = []
        for row in rows:
            subject = subjects.get(row["subject_id"])
            if subject is None:
                logger.warning("user_subjects row %s points at missing subject %s", row.get("$id"), row["subject_id"])
                continue
            results.append(
                SubjectAssignment(
                    subject_id=row["subject_id"],
                    subject_name=subject.get("name", ""),
                    level=self._level(subject.get("level")),
                    grade=row.get("grade"),
                )
            )
        return results

    def get_grade(self, uid: str, subject_id: str) -> Optional[str]:
        return self._user_subject(uid, subject_id).get("grade")

    def update_grade(self, uid: str, subject_id: str, grade: str) -> None:
        row = self._user_subject(uid, subject_id)
        subject = self._subjects_by_id([subject_id]).get(subject_id, {})
        level = self._level(subject.get("level"))
        if not is_valid_grade(grade, level, subject.get("name")):
            raise GradeStoreError(f"Invalid grade {grade} for {subject.get('name', subject_id)}")

        self._update_document(self.user_subjects_collection_id, row["$id"], {"grade": grade})
        logger.info("Saved grade %s for subject %s", grade, subject_id)
