"""
Taxonomy Resolver
=================

Applies one taxonomy selection to a freshly created record.

Modes:
- skip: nothing happens, no report entry
- fixed: the configured term must exist in the taxonomy, it is never replaced
- auto: candidate names (or ids) from the payload are looked up by exact
  name and created when missing, then assigned in a single call

Failures never propagate: they become an error ``TaxonomyAssignment``.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from ..core.errors import StoreError, TaxonomyAssignmentError
from ..recipe.sanitizer import sanitize_text
from ..schemas.publish import TaxonomyAssignment, TaxonomyMode, TaxonomySelection
from ..store.base import ContentStore

logger = logging.getLogger(__name__)

CANDIDATE_PARAMS = {"category": "category", "post_tag": "tags"}


def candidate_param_name(taxonomy: str) -> str:
    """Payload key holding the agent's term suggestions for ``taxonomy``."""
    return CANDIDATE_PARAMS.get(taxonomy, taxonomy)


def _as_candidates(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class TaxonomyResolver:
    """Resolves and assigns terms through a ``ContentStore``."""

    def __init__(self, store: ContentStore):
        self.store = store

    def resolve(
        self,
        record_id: int,
        taxonomy: str,
        selection: TaxonomySelection,
        candidates: Any = None,
    ) -> Optional[TaxonomyAssignment]:
        """
        Apply ``selection`` for ``taxonomy`` on ``record_id``.

        Returns None when nothing was attempted (skip, or auto without usable
        candidates).
        """
        if selection.mode is TaxonomyMode.SKIP:
            return None

        try:
            if not self.store.taxonomy_exists(taxonomy):
                raise TaxonomyAssignmentError(f"Taxonomy '{taxonomy}' does not exist")
            if selection.mode is TaxonomyMode.FIXED:
                return self._assign_fixed(record_id, taxonomy, selection.term_id)
            return self._assign_auto(record_id, taxonomy, _as_candidates(candidates))
        except TaxonomyAssignmentError as e:
            logger.warning(f"Taxonomy '{taxonomy}' on record {record_id}: {e.message}")
            return self._error(taxonomy, selection, e.message)
        except StoreError as e:
            logger.warning(f"Taxonomy '{taxonomy}' on record {record_id} failed in store: {e.message}")
            return self._error(taxonomy, selection, e.message)

    @staticmethod
    def _error(taxonomy: str, selection: TaxonomySelection, detail: str) -> TaxonomyAssignment:
        return TaxonomyAssignment(
            taxonomy=taxonomy,
            mode=selection.mode,
            term_id=selection.term_id,
            outcome="error",
            detail=detail,
        )

    def _assign_fixed(self, record_id: int, taxonomy: str, term_id: Optional[int]) -> TaxonomyAssignment:
        term = self.store.get_term(taxonomy, term_id) if term_id else None
        if term is None:
            raise TaxonomyAssignmentError(f"Term {term_id} does not exist in taxonomy '{taxonomy}'")

        assigned = self.store.set_record_terms(record_id, taxonomy, [term.term_id])
        return TaxonomyAssignment(
            taxonomy=taxonomy,
            mode=TaxonomyMode.FIXED,
            term_id=term.term_id,
            resolved_term_ids=assigned,
            terms=[term.name],
        )

    def _assign_auto(self, record_id: int, taxonomy: str, candidates: Sequence[Any]) -> Optional[TaxonomyAssignment]:
        term_ids: List[int] = []
        names: List[str] = []
        failures: List[str] = []
        seen_names: set = set()
        attempted = False

        for candidate in candidates:
            # Integer candidates are existing term ids
            if isinstance(candidate, int) and not isinstance(candidate, bool):
                attempted = True
                term = self.store.get_term(taxonomy, candidate)
                if term is None:
                    failures.append(f"Term {candidate} does not exist")
                    continue
                if term.term_id not in term_ids:
                    term_ids.append(term.term_id)
                    names.append(term.name)
                continue

            name = sanitize_text(candidate)
            if not name or name in seen_names:
                continue
            seen_names.add(name)
            attempted = True

            term = self.store.find_term_by_name(taxonomy, name)
            if term is None:
                try:
                    term = self.store.create_term(taxonomy, name)
                    logger.debug(f"Created term '{name}' in '{taxonomy}'")
                except StoreError as e:
                    # A concurrent publish may have created it since the lookup
                    term = self.store.find_term_by_name(taxonomy, name)
                    if term is None:
                        failures.append(f"Could not create term '{name}': {e.message}")
                        continue
            if term.term_id not in term_ids:
                term_ids.append(term.term_id)
                names.append(term.name)

        if not attempted:
            return None
        if not term_ids:
            raise TaxonomyAssignmentError("; ".join(failures) or "No terms could be resolved")

        assigned = self.store.set_record_terms(record_id, taxonomy, term_ids)
        return TaxonomyAssignment(
            taxonomy=taxonomy,
            mode=TaxonomyMode.AUTO,
            resolved_term_ids=assigned,
            terms=names,
            detail="; ".join(failures),
        )
