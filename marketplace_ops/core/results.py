from pydantic import BaseModel, computed_field
from typing import List, Optional

from marketplace_ops.core.exceptions import PartialBatchFailure


class ItemResult(BaseModel):
    key: str
    success: bool
    detail: Optional[str] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Per-item outcome of a best-effort loop. Items keep the order they were attempted in."""

    operation: str
    items: List[ItemResult] = []

    def record_success(self, key: str, detail: Optional[str] = None) -> ItemResult:
        item = ItemResult(key=key, success=True, detail=detail)
        self.items.append(item)
        return item

    def record_failure(self, key: str, error: object) -> ItemResult:
        item = ItemResult(key=key, success=False, error=str(error))
        self.items.append(item)
        return item

    @property
    def succeeded(self) -> List[ItemResult]:
        return [i for i in self.items if i.success]

    @property
    def failed(self) -> List[ItemResult]:
        return [i for i in self.items if not i.success]

    @computed_field
    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @computed_field
    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return self.failure_count == 0

    def raise_for_failures(self) -> None:
        if not self.ok:
            raise PartialBatchFailure(self)
