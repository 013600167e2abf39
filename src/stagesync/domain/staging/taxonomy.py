"""Taxonomy closure for a set of posts.

Responsibilities of this stage:
- attach (term-taxonomy, order) pairs to the posts they belong to
- collect every ancestor term-taxonomy so the receiver can rebuild the hierarchy
- fetch the term rows those term-taxonomies refer to

Ancestors are looked up in the ``category`` taxonomy only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from stagesync.domain.model import Post, Term, TermTaxonomy
    from stagesync.domain.ports import ContentStore

log = getLogger(__name__)

ANCESTOR_TAXONOMY = "category"


@dataclass(slots=True)
class TaxonomyClosure:
    term_taxonomies: list[TermTaxonomy] = field(default_factory=list["TermTaxonomy"])
    terms: list[Term] = field(default_factory=list["Term"])


@dataclass(slots=True)
class TaxonomyClosureResolver:
    store: ContentStore
    ancestor_taxonomy: str = ANCESTOR_TAXONOMY

    def resolve(self, posts: Iterable[Post]) -> TaxonomyClosure:
        posts_by_id = {post.id: post for post in posts}
        if not posts_by_id:
            return TaxonomyClosure()

        relationships = self.store.get_relationships_by_post_ids(list(posts_by_id))
        term_taxonomy_ids: list[int] = []
        for relation in relationships:
            # object_id may point at something other than a post in this batch
            post = posts_by_id.get(relation.object_id)
            if post is not None:
                post.add_taxonomy_relationship(relation.term_taxonomy_id, relation.term_order)
            term_taxonomy_ids.append(relation.term_taxonomy_id)

        base = list(self.store.get_term_taxonomies_by_ids(_unique(term_taxonomy_ids)))
        merged = _dedupe_by_value([*base, *self.ancestors_of(base)])

        term_ids: list[int] = []
        for term_taxonomy in merged:
            term_ids.append(term_taxonomy.term_id)
            # the receiver expects a term row for the parent id as well
            if term_taxonomy.parent > 0:
                term_ids.append(term_taxonomy.parent)

        terms = list(self.store.get_terms_by_ids(_unique(term_ids)))
        log.debug(
            "Resolved taxonomy closure: %s term-taxonomies (%s ancestors), %s terms",
            len(merged),
            len(merged) - len(_dedupe_by_value(base)),
            len(terms),
        )
        return TaxonomyClosure(term_taxonomies=merged, terms=terms)

    def ancestors_of(self, term_taxonomies: Iterable[TermTaxonomy]) -> list[TermTaxonomy]:
        """Climb parent links of every record until a root or a missing parent.

        Each (term, taxonomy) pair is looked up at most once, so shared ancestors
        and cyclic parent links do not cause repeated work.
        """

        ancestors: list[TermTaxonomy] = []
        visited: set[tuple[int, str]] = set()
        pending = [tt.parent for tt in term_taxonomies if tt.parent > 0]

        while pending:
            parent_term_id = pending.pop()
            lookup = (parent_term_id, self.ancestor_taxonomy)
            if lookup in visited:
                continue
            visited.add(lookup)

            parent = self.store.get_term_taxonomy_by_term_and_taxonomy(
                parent_term_id, self.ancestor_taxonomy
            )
            if parent is None:
                log.debug("Parent term %s not found in %s", parent_term_id, lookup[1])
                continue
            ancestors.append(parent)
            if parent.parent > 0:
                pending.append(parent.parent)

        return ancestors


def _dedupe_by_value(term_taxonomies: Iterable[TermTaxonomy]) -> list[TermTaxonomy]:
    return list(dict.fromkeys(term_taxonomies))


def _unique(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(ids))
