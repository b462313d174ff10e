"""Evaluation model: the result marker for a processed pull request."""

from typing import Any

from typing_extensions import override

from sqlalchemy import BigInteger, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base


class PrEvaluation(Base):
    """LLM evaluation of one pull request.

    The existence of a row for a pr_id is what marks that pull request as
    processed. The unique constraint on pr_id keeps at most one marker per
    pull request. Rows are appended by the evaluation side, never by the
    drain trigger.
    """

    __tablename__ = "pr_evaluations"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pr_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id"), unique=True, nullable=False, index=True
    )
    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    final_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    @override
    def __repr__(self) -> str:
        return f"<PrEvaluation(pr_id={self.pr_id}, final_score={self.final_score})>"
