from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..db import Store, get_store
from ..deps import get_settings
from ..grading import GradingPolicy
from ..progress import LedgerPolicy
from ..settings import Settings
from ..submission import submit_activity
from .auth import get_current_user, User

router = APIRouter(prefix="/activities", tags=["activities"])


class SubmitRequest(BaseModel):
	submission: Any = None


@router.post("/{activity_id}/submit")
def submit(
	activity_id: str,
	req: SubmitRequest,
	user: User = Depends(get_current_user),
	store: Store = Depends(get_store),
	settings: Settings = Depends(get_settings),
):
	outcome = submit_activity(
		store,
		user.id,
		activity_id,
		req.submission,
		grading_policy=GradingPolicy.from_settings(settings),
		ledger_policy=LedgerPolicy.from_settings(settings),
	)
	return outcome.as_dict()
