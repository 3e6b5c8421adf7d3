# certprep/core/database.py
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Dict, Any, Optional

import pymongo
from pymongo.errors import DuplicateKeyError, PyMongoError

from .config import config, Config
from .models import PracticeTest, SubmissionSession
from .utils import ValidationUtils, generate_session_key

logger = logging.getLogger(__name__)


class FileTestRepository:
    """
    One JSON document per test under DATA_DIR, sessions under DATA_DIR/sessions.

    Documents are written to a temp file in the same directory and moved into
    place, so readers see either the old file or the complete new one.
    """

    def __init__(self, data_dir: Path = None):
        self.data_dir = Path(data_dir or config.DATA_DIR)
        self.sessions_dir = self.data_dir / "sessions"
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"📁 File repository at {self.data_dir.resolve()}")

    def _test_path(self, test_id: str) -> Path:
        return self.data_dir / f"{test_id}.json"

    def _write_temp(self, directory: Path, document: Dict[str, Any]) -> str:
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
        except BaseException:
            os.unlink(temp_path)
            raise
        return temp_path

    def _write_exclusive(self, path: Path, document: Dict[str, Any]) -> None:
        """Create `path` only if it does not exist yet"""
        with open(path, "x", encoding="utf-8") as handle:
            try:
                json.dump(document, handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            except BaseException:
                handle.close()
                os.unlink(path)
                raise

    def save(self, test: PracticeTest) -> None:
        if not ValidationUtils.validate_test_id(test.id):
            raise ValueError(f"Invalid test id: {test.id}")

        temp_path = self._write_temp(self.data_dir, test.to_dict())
        os.replace(temp_path, self._test_path(test.id))
        logger.info(f"💾 Test saved: {test.id} ({test.question_count} questions)")

    def load(self, test_id: str) -> Optional[PracticeTest]:
        """The stored test, or None when the id is unknown"""
        if not ValidationUtils.validate_test_id(test_id):
            return None

        path = self._test_path(test_id)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except FileNotFoundError:
            logger.info(f"Test not found: {test_id}")
            return None

        return PracticeTest.from_dict(document)

    def save_session(self, session: SubmissionSession) -> str:
        """Store a session under a fresh key; existing sessions are never replaced"""
        base_key = generate_session_key(session.test_id)
        temp_path = None
        key = base_key
        attempt = 0

        try:
            while True:
                session.session_id = f"session-{key}"
                if temp_path is not None:
                    os.unlink(temp_path)
                temp_path = self._write_temp(self.sessions_dir, session.to_dict())
                target = self.sessions_dir / f"{key}.json"
                try:
                    # link() fails instead of replacing an existing file
                    os.link(temp_path, target)
                    break
                except FileExistsError:
                    attempt += 1
                    key = f"{base_key}-{attempt}"
                except OSError as link_error:
                    # No hard links on this filesystem
                    logger.debug(f"Hard link unavailable ({link_error}), using exclusive create")
                    try:
                        self._write_exclusive(target, session.to_dict())
                        break
                    except FileExistsError:
                        attempt += 1
                        key = f"{base_key}-{attempt}"
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        logger.info(f"💾 Session saved: {key} (score {session.score})")
        return key

    def list_sessions(self, test_id: str) -> List[SubmissionSession]:
        """Sessions recorded for a test, newest first"""
        if not ValidationUtils.validate_test_id(test_id):
            return []

        sessions = []
        for path in self.sessions_dir.glob(f"{test_id}-*.json"):
            with open(path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
            # test ids may share a prefix
            if document.get("testId") == test_id:
                sessions.append(SubmissionSession.from_dict(document))

        sessions.sort(key=lambda s: s.completed_at, reverse=True)
        return sessions

    def validate_connection(self) -> Dict[str, Any]:
        writable = os.access(self.data_dir, os.W_OK) and os.access(self.sessions_dir, os.W_OK)
        return {"backend": "file", "overall": writable, "path": str(self.data_dir)}

    def close(self):
        pass


class MongoTestRepository:
    """Tests and sessions as MongoDB documents keyed by their ids"""

    def __init__(self, settings: Config = None, client: pymongo.MongoClient = None):
        self.settings = settings or config
        self.mongo_client = client or pymongo.MongoClient(
            self.settings.MONGO_URI,
            serverSelectionTimeoutMS=5000,
            maxPoolSize=10
        )
        self.db = self.mongo_client[self.settings.MONGO_DB_NAME]
        self.tests_collection = self.db[self.settings.TESTS_COLLECTION]
        self.sessions_collection = self.db[self.settings.SESSIONS_COLLECTION]

        try:
            self.sessions_collection.create_index("testId")
        except PyMongoError as idx_error:
            logger.warning(f"⚠️ Index creation failed: {idx_error}")

        logger.info(f"✅ MongoDB repository ready ({self.settings.MONGO_DB_NAME})")

    def save(self, test: PracticeTest) -> None:
        document = test.to_dict()
        document["_id"] = test.id
        # Single-document writes are atomic in MongoDB
        self.tests_collection.replace_one({"_id": test.id}, document, upsert=True)
        logger.info(f"💾 Test saved to MongoDB: {test.id}")

    def load(self, test_id: str) -> Optional[PracticeTest]:
        document = self.tests_collection.find_one({"_id": test_id}, {"_id": 0})
        if not document:
            logger.info(f"Test not found: {test_id}")
            return None
        return PracticeTest.from_dict(document)

    def save_session(self, session: SubmissionSession) -> str:
        base_key = generate_session_key(session.test_id)
        key = base_key
        attempt = 0

        while True:
            session.session_id = f"session-{key}"
            document = session.to_dict()
            document["_id"] = key
            try:
                self.sessions_collection.insert_one(document)
                break
            except DuplicateKeyError:
                attempt += 1
                key = f"{base_key}-{attempt}"

        logger.info(f"💾 Session saved to MongoDB: {key} (score {session.score})")
        return key

    def list_sessions(self, test_id: str) -> List[SubmissionSession]:
        cursor = self.sessions_collection.find(
            {"testId": test_id}, {"_id": 0}
        ).sort("completedAt", pymongo.DESCENDING)
        return [SubmissionSession.from_dict(document) for document in cursor]

    def validate_connection(self) -> Dict[str, Any]:
        status = {"backend": "mongo", "overall": False}
        try:
            self.mongo_client.admin.command("ping")
            status["overall"] = True
        except PyMongoError as e:
            logger.error(f"❌ MongoDB validation failed: {e}")
            status["error"] = str(e)
        return status

    def close(self):
        if self.mongo_client:
            self.mongo_client.close()
            logger.info("✅ MongoDB connection closed")


def create_repository(settings: Config = None):
    """Repository for the configured STORAGE_BACKEND"""
    settings = settings or config
    if settings.STORAGE_BACKEND == "mongo":
        return MongoTestRepository(settings)
    return FileTestRepository(settings.DATA_DIR)
