import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from models.use_case import UseCaseForm, UseCaseRecord

logger = logging.getLogger(__name__)


class UseCaseNotFound(KeyError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _merge(record: UseCaseRecord, changes: Dict, generated_content: Optional[str]) -> UseCaseRecord:
    """Apply partial form ``changes`` and re-validate the whole form."""
    form_data = record.form.model_dump()
    form_data.update(changes or {})
    form = UseCaseForm.model_validate(form_data)
    return record.model_copy(update={
        "form": form,
        "generated_content": generated_content if generated_content is not None else record.generated_content,
        "updated_at": _now(),
    })


class UseCaseStore:
    """Storage interface for use-case records."""

    async def create(self, form: UseCaseForm, generated_content: Optional[str] = None) -> UseCaseRecord:
        raise NotImplementedError

    async def get(self, use_case_id: str) -> UseCaseRecord:
        raise NotImplementedError

    async def list(self) -> List[UseCaseRecord]:
        raise NotImplementedError

    async def update(self, use_case_id: str, changes: Dict, generated_content: Optional[str] = None) -> UseCaseRecord:
        raise NotImplementedError

    async def delete(self, use_case_id: str) -> None:
        raise NotImplementedError


class MemoryUseCaseStore(UseCaseStore):
    def __init__(self):
        self._records: Dict[str, UseCaseRecord] = {}

    async def create(self, form, generated_content=None):
        now = _now()
        record = UseCaseRecord(
            id=str(uuid.uuid4()), form=form, generated_content=generated_content,
            created_at=now, updated_at=now,
        )
        self._records[record.id] = record
        logger.info(f"Stored use case {record.id} ({form.use_case_code})")
        return record

    async def get(self, use_case_id):
        try:
            return self._records[use_case_id]
        except KeyError:
            raise UseCaseNotFound(use_case_id) from None

    async def list(self):
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)

    async def update(self, use_case_id, changes, generated_content=None):
        record = _merge(await self.get(use_case_id), changes, generated_content)
        self._records[use_case_id] = record
        return record

    async def delete(self, use_case_id):
        if self._records.pop(use_case_id, None) is None:
            raise UseCaseNotFound(use_case_id)


class MongoUseCaseStore(UseCaseStore):
    """Records in the ``use_cases`` collection; the form is stored as a sub-document."""

    def __init__(self, collection):
        self.collection = collection

    async def create(self, form, generated_content=None):
        now = _now()
        record = UseCaseRecord(
            id=str(uuid.uuid4()), form=form, generated_content=generated_content,
            created_at=now, updated_at=now,
        )
        await self.collection.insert_one(record.model_dump())
        logger.info(f"Stored use case {record.id} ({form.use_case_code})")
        return record

    async def get(self, use_case_id):
        doc = await self.collection.find_one({"id": use_case_id}, {"_id": 0})
        if not doc:
            raise UseCaseNotFound(use_case_id)
        return UseCaseRecord.model_validate(doc)

    async def list(self):
        docs = await self.collection.find({}, {"_id": 0}).sort("created_at", -1).to_list(1000)
        return [UseCaseRecord.model_validate(d) for d in docs]

    async def update(self, use_case_id, changes, generated_content=None):
        record = _merge(await self.get(use_case_id), changes, generated_content)
        await self.collection.replace_one({"id": use_case_id}, record.model_dump())
        return record

    async def delete(self, use_case_id):
        result = await self.collection.delete_one({"id": use_case_id})
        if result.deleted_count == 0:
            raise UseCaseNotFound(use_case_id)


_store: Optional[UseCaseStore] = None


def get_store() -> UseCaseStore:
    """Process-wide store picked by STORAGE_BACKEND."""
    global _store
    if _store is None:
        from config import STORAGE_BACKEND
        if STORAGE_BACKEND == "mongo":
            from database import db
            _store = MongoUseCaseStore(db.use_cases)
        else:
            _store = MemoryUseCaseStore()
        logger.info(f"Use case store: {type(_store).__name__}")
    return _store
