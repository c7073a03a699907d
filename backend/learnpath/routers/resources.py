from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..annotation import AnnotationPipeline, resource_payload
from ..annotation_queue import AnnotationQueue
from ..book import related_resources
from ..db import get_db
from ..deps import get_pipeline, get_queue
from ..errors import ResourceNotFound
from ..models import Resource
from .auth import get_current_user, require_admin, User

router = APIRouter(prefix="/resources", tags=["resources"])


# Declared before /{resource_id} so "queue" and "related" are not read as ids
@router.get("/queue")
def queue_stats(user: User = Depends(require_admin), queue: AnnotationQueue = Depends(get_queue)):
	return queue.stats()


@router.get("/related")
def get_related_resources(
	concept_id: Optional[str] = Query(default=None, alias="conceptId"),
	concept: Optional[str] = None,
	tags: Optional[str] = None,
	limit: int = Query(default=5, ge=1, le=50),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	"""Resources ranked against a book concept, or a free-form name and tag list."""
	if concept_id:
		return related_resources(db, concept_id, limit=limit)
	if not concept and not tags:
		raise HTTPException(status_code=400, detail="Missing required parameters: conceptId, tags or concept")
	tag_list = [tag for tag in (tags or "").split(",") if tag.strip()]
	return related_resources(db, concept_name=concept or "", tags=tag_list, limit=limit)


@router.get("/{resource_id}")
def get_resource(resource_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	resource = db.get(Resource, resource_id)
	if resource is None:
		raise ResourceNotFound()
	return resource_payload(resource)


@router.post("/{resource_id}/explain")
async def explain_resource(
	resource_id: str,
	force: bool = False,
	user: User = Depends(get_current_user),
	pipeline: AnnotationPipeline = Depends(get_pipeline),
):
	resource = await pipeline.annotate(resource_id, force=force)
	return resource_payload(resource)


@router.post("/{resource_id}/annotate", status_code=202)
async def annotate_resource(
	resource_id: str,
	force: bool = False,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	queue: AnnotationQueue = Depends(get_queue),
):
	if db.get(Resource, resource_id) is None:
		raise ResourceNotFound()
	depth = queue.enqueue(resource_id, force=force)
	return {"queued": True, "resourceId": resource_id, "depth": depth}
