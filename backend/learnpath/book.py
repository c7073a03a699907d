"""Book table of contents and per-user concept explanations.

The table of contents follows "Data Analysis from Scratch with Python" and is
the source of truth for concept ids. Generated explanations are cached per
(concept, user) in ``ConceptExplanation``.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .credentials import load_api_key
from .crypto import CredentialCipher
from .db import Store
from .errors import ApiKeyNotFound, ConceptNotFound
from .gemini_client import GeminiClient
from .models import ConceptExplanation, Resource
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Concept:
	id: str
	name: str
	description: str
	tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Section:
	id: str
	title: str
	description: str
	concepts: Tuple[Concept, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Chapter:
	id: str
	number: int
	title: str
	description: str
	sections: Tuple[Section, ...] = field(default_factory=tuple)


def _c(cid: str, name: str, description: str, *tags: str) -> Concept:
	return Concept(id=f"concept-{cid}", name=name, description=description, tags=tags)


BOOK: Tuple[Chapter, ...] = (
	Chapter("chapter-1", 1, "Introduction to Data Analysis", "An overview of data analysis and its importance in various fields.", (
		Section("section-1-1", "What is Data Analysis?", "Understanding the fundamentals of data analysis and its applications.", (
			_c("1-1-1", "Definition of Data Analysis", "The process of inspecting, cleaning, transforming, and modeling data to discover useful information.", "fundamentals", "definition"),
			_c("1-1-2", "Data Analysis Process", "The steps involved in the data analysis process: data collection, cleaning, exploration, analysis, and interpretation.", "process", "methodology"),
		)),
		Section("section-1-2", "Types of Data Analysis", "Different approaches to analyzing data.", (
			_c("1-2-1", "Descriptive Analysis", "Summarizing the main characteristics of a dataset using statistics and visualizations.", "analysis-types", "descriptive"),
			_c("1-2-2", "Exploratory Analysis", "Exploring data to discover patterns, anomalies, and relationships.", "analysis-types", "exploratory"),
			_c("1-2-3", "Inferential Analysis", "Using sample data to make inferences about a larger population.", "analysis-types", "inferential"),
			_c("1-2-4", "Predictive Analysis", "Using historical data to predict future outcomes.", "analysis-types", "predictive"),
		)),
	)),
	Chapter("chapter-2", 2, "Setting Up Your Environment", "Preparing your computer for data analysis with Python.", (
		Section("section-2-1", "Installing Python", "How to install Python and set up a development environment.", (
			_c("2-1-1", "Python Installation", "Installing Python on different operating systems.", "setup", "installation"),
			_c("2-1-2", "Virtual Environments", "Creating isolated Python environments for different projects.", "setup", "virtual-environments"),
		)),
		Section("section-2-2", "Essential Libraries for Data Analysis", "Introduction to key Python libraries used in data analysis.", (
			_c("2-2-1", "NumPy Overview", "Introduction to NumPy, a library for numerical computing in Python.", "libraries", "numpy"),
			_c("2-2-2", "Pandas Overview", "Introduction to Pandas, a library for data manipulation and analysis.", "libraries", "pandas"),
			_c("2-2-3", "Matplotlib Overview", "Introduction to Matplotlib, a library for creating visualizations.", "libraries", "matplotlib"),
		)),
	)),
	Chapter("chapter-3", 3, "Python Quick Review", "A refresher on Python programming fundamentals.", (
		Section("section-3-1", "Python Basics", "Fundamental Python concepts for data analysis.", (
			_c("3-1-1", "Python Variables and Data Types", "Understanding variables, integers, floats, strings, booleans, and None in Python.", "python-basics", "data-types"),
			_c("3-1-2", "Python Lists", "Working with lists in Python: creation, indexing, slicing, and methods.", "python-basics", "lists"),
			_c("3-1-3", "Python Dictionaries", "Using dictionaries for key-value pair storage in Python.", "python-basics", "dictionaries"),
		)),
		Section("section-3-2", "Control Flow", "Controlling the flow of execution in Python programs.", (
			_c("3-2-1", "Conditional Statements", "Using if, elif, and else statements for decision making in Python.", "python-basics", "control-flow"),
			_c("3-2-2", "Loops in Python", "Using for and while loops for iteration in Python.", "python-basics", "loops"),
		)),
	)),
	Chapter("chapter-4", 4, "NumPy Fundamentals", "Working with numerical data using NumPy.", (
		Section("section-4-1", "NumPy Arrays", "Understanding and working with NumPy arrays.", (
			_c("4-1-1", "Creating NumPy Arrays", "Different ways to create NumPy arrays.", "numpy", "arrays"),
			_c("4-1-2", "NumPy Array Indexing and Slicing", "Accessing elements and subarrays in NumPy arrays.", "numpy", "indexing"),
		)),
		Section("section-4-2", "NumPy Operations", "Performing operations on NumPy arrays.", (
			_c("4-2-1", "NumPy Array Operations", "Arithmetic operations with NumPy arrays.", "numpy", "operations"),
			_c("4-2-2", "NumPy Broadcasting", "Understanding broadcasting in NumPy operations.", "numpy", "broadcasting"),
		)),
	)),
	Chapter("chapter-5", 5, "Pandas for Data Manipulation", "Using Pandas for data manipulation and analysis.", (
		Section("section-5-1", "Pandas Series and DataFrames", "Understanding the core data structures in Pandas.", (
			_c("5-1-1", "Pandas Series", "Working with one-dimensional labeled arrays in Pandas.", "pandas", "series"),
			_c("5-1-2", "Pandas DataFrames", "Working with two-dimensional labeled data structures in Pandas.", "pandas", "dataframes"),
		)),
		Section("section-5-2", "Data Selection and Filtering", "Selecting and filtering data in Pandas.", (
			_c("5-2-1", "Indexing in Pandas", "Different ways to index and select data in Pandas.", "pandas", "indexing"),
			_c("5-2-2", "Boolean Indexing", "Filtering data based on conditions in Pandas.", "pandas", "filtering"),
		)),
	)),
)

_CONCEPTS: Dict[str, Concept] = {
	concept.id: concept
	for chapter in BOOK
	for section in chapter.sections
	for concept in section.concepts
}


def get_concept(concept_id: str) -> Optional[Concept]:
	return _CONCEPTS.get(concept_id)


def relevance_score(resource: Resource, concept_name: str, tags: Sequence[str]) -> int:
	"""Keyword overlap between a resource and a concept.

	Whole-name hits weigh most (title 10, AI explanation 7, description 5),
	then words of the name longer than three letters (title 3, description 2),
	then each tag (category 8, AI explanation 5, title 4, description 3).
	"""
	title = resource.title.lower()
	description = (resource.description or "").lower()
	category = resource.category.lower().replace("_", " ")
	explanation = (resource.ai_explanation or "").lower()
	name = concept_name.strip().lower()

	score = 0
	if name:
		if name in title:
			score += 10
		if name in description:
			score += 5
		if explanation and name in explanation:
			score += 7
		for word in name.split(" "):
			if len(word) > 3:
				if word in title:
					score += 3
				if word in description:
					score += 2
	for tag in tags:
		tag = tag.strip().lower()
		if not tag:
			continue
		if tag in category:
			score += 8
		if tag in title:
			score += 4
		if tag in description:
			score += 3
		if explanation and tag in explanation:
			score += 5
	return score


def related_resources(
	db: Session,
	concept_id: Optional[str] = None,
	*,
	concept_name: str = "",
	tags: Sequence[str] = (),
	limit: int = 5,
) -> List[dict]:
	"""Resources scoring above zero for a concept, best first.

	A ``concept_id`` supplies the name and tags from the book; otherwise the
	caller passes them directly.
	"""
	if concept_id is not None:
		concept = get_concept(concept_id)
		if concept is None:
			raise ConceptNotFound()
		concept_name, tags = concept.name, concept.tags
	resources = db.execute(select(Resource).order_by(Resource.created_at)).scalars().all()
	scored = []
	for resource in resources:
		score = relevance_score(resource, concept_name, tags)
		if score > 0:
			scored.append((score, resource))
	scored.sort(key=lambda pair: pair[0], reverse=True)
	return [
		{
			"id": resource.id,
			"title": resource.title,
			"description": resource.description,
			"category": resource.category,
			"aiProcessed": resource.ai_processed,
			"aiExplanation": resource.ai_explanation,
			"relevanceScore": score,
		}
		for score, resource in scored[:limit]
	]


def table_of_contents() -> List[dict]:
	return [
		{
			"id": chapter.id,
			"number": chapter.number,
			"title": chapter.title,
			"sections": [
				{
					"id": section.id,
					"title": section.title,
					"concepts": [{"id": c.id, "name": c.name} for c in section.concepts],
				}
				for section in chapter.sections
			],
		}
		for chapter in BOOK
	]


def cached_explanation(db: Session, user_id: str, concept_id: str) -> Optional[str]:
	if get_concept(concept_id) is None:
		raise ConceptNotFound()
	return db.execute(
		select(ConceptExplanation.explanation).where(
			ConceptExplanation.concept_id == concept_id, ConceptExplanation.user_id == user_id
		)
	).scalar_one_or_none()


async def explain_concept(
	store: Store,
	cipher: CredentialCipher,
	settings: Settings,
	user_id: str,
	concept_id: str,
	*,
	force: bool = False,
	client_factory=None,
) -> Tuple[str, bool]:
	"""Explanation text for a concept and whether it came from the cache.

	Generates with the user's own key and stores the result for that user.
	"""
	concept = get_concept(concept_id)
	if concept is None:
		raise ConceptNotFound()
	with store.session_scope() as db:
		existing = cached_explanation(db, user_id, concept_id)
		if existing is not None and not force:
			return existing, True
		api_key = load_api_key(db, cipher, user_id)
	if not api_key:
		raise ApiKeyNotFound()

	factory = client_factory or (lambda key: GeminiClient(key, settings=settings))
	client = factory(api_key)
	try:
		explanation = await client.explain_book_concept(concept.name, concept.description, list(concept.tags))
	finally:
		await client.aclose()

	inserted = False
	if existing is None:
		try:
			with store.session_scope() as db:
				db.add(ConceptExplanation(concept_id=concept_id, user_id=user_id, explanation=explanation))
			inserted = True
		except IntegrityError:
			# Another request stored one while this one was generating; last write wins
			logger.info("Explanation of %s for user %s was stored concurrently, overwriting", concept_id, user_id)
	if not inserted:
		with store.session_scope() as db:
			db.execute(
				update(ConceptExplanation)
				.where(ConceptExplanation.concept_id == concept_id, ConceptExplanation.user_id == user_id)
				.values(explanation=explanation)
				.execution_options(synchronize_session=False)
			)
	logger.info("Stored explanation of %s for user %s", concept_id, user_id)
	return explanation, False
