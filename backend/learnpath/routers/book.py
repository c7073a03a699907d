from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import book
from ..crypto import CredentialCipher
from ..db import Store, get_db, get_store
from ..deps import get_cipher, get_client_factory, get_settings
from ..settings import Settings
from .auth import get_current_user, User

router = APIRouter(prefix="/book", tags=["book"])


@router.get("")
def table_of_contents():
	return {"chapters": book.table_of_contents()}


@router.get("/concepts/{concept_id}/explanation")
def get_explanation(concept_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return {"explanation": book.cached_explanation(db, user.id, concept_id)}


@router.post("/concepts/{concept_id}/explain")
async def explain(
	concept_id: str,
	force: bool = False,
	user: User = Depends(get_current_user),
	store: Store = Depends(get_store),
	cipher: CredentialCipher = Depends(get_cipher),
	settings: Settings = Depends(get_settings),
	client_factory=Depends(get_client_factory),
):
	explanation, cached = await book.explain_concept(
		store, cipher, settings, user.id, concept_id, force=force, client_factory=client_factory
	)
	return {"explanation": explanation, "cached": cached}
