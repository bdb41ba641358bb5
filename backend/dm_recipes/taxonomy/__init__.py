"""Taxonomy resolution for published records."""

from .resolver import TaxonomyResolver, candidate_param_name

__all__ = ["TaxonomyResolver", "candidate_param_name"]
