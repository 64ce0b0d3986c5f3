"""
Predicate tree for post searches

A search is assembled as a small tree of AND / OR / NOT nodes over three
kinds of leaves:
- HasAnyTag: the post carries at least one of a set of tag ids
- MetaCondition: a meta tag condition on the post's own columns
- RawCondition: a prepared SQL fragment (used for post hiding)

The tree is compiled once into a parameterised WHERE fragment over the
posts table aliased as "p"; the same fragment drives both the page query
and the count query.
"""

from typing import List, Sequence, Tuple


class Predicate:
    def to_sql(self, params: list) -> str:
        raise NotImplementedError

    def compile(self) -> Tuple[str, list]:
        params: list = []
        sql = self.to_sql(params)
        return sql, params


class And(Predicate):
    def __init__(self, children: Sequence[Predicate] = ()):
        self.children = list(children)

    def to_sql(self, params: list) -> str:
        if not self.children:
            return '1'
        return '(' + ' AND '.join(child.to_sql(params) for child in self.children) + ')'


class Or(Predicate):
    def __init__(self, children: Sequence[Predicate] = ()):
        self.children = list(children)

    def to_sql(self, params: list) -> str:
        if not self.children:
            return '0'
        return '(' + ' OR '.join(child.to_sql(params) for child in self.children) + ')'


class Not(Predicate):
    def __init__(self, child: Predicate):
        self.child = child

    def to_sql(self, params: list) -> str:
        return f"NOT {self.child.to_sql(params)}"


class HasAnyTag(Predicate):
    """Post carries at least one of `tag_ids`. An empty set never matches."""

    def __init__(self, tag_ids: Sequence[int]):
        self.tag_ids = sorted(set(tag_ids))

    def to_sql(self, params: list) -> str:
        if not self.tag_ids:
            return '0'
        params.extend(self.tag_ids)
        if len(self.tag_ids) == 1:
            tag_filter = 'pt.tag_id = ?'
        else:
            tag_filter = f"pt.tag_id IN ({','.join('?' * len(self.tag_ids))})"
        return (f"EXISTS (SELECT 1 FROM post_tags pt "
                f"WHERE pt.post_id = p.id AND {tag_filter})")


class MetaCondition(Predicate):
    def __init__(self, definition, negated: bool = False):
        self.definition = definition
        self.negated = negated

    def to_sql(self, params: list) -> str:
        return self.definition.sql_condition(self.negated)


class RawCondition(Predicate):
    def __init__(self, sql: str, params: List = None):
        self.sql = sql
        self.params = list(params or [])

    def to_sql(self, params: list) -> str:
        params.extend(self.params)
        return self.sql
