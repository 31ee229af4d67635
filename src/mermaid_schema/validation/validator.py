from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from grandalf.graphs import Edge, Graph, Vertex

from ..config import CompilerConfig
from ..er.types import ErEntity
from ..errors import EmptyDiagramError
from ..naming import format_display_name
from ..schema.mapper import is_primary_name_clash, map_identifier
from ..schema.types import ManyToManyRelationship, OneToManyRelationship, RelationshipDefinition
from .prompts import build_resolution_prompts
from .types import IssueType, ValidationIssue, ValidationReport

logger = logging.getLogger(__name__)

# ============================================================================
# Relationship validator
#
# Models cascade-delete ownership as a directed graph (grandalf), with an
# edge parent -> child for every parental one-to-many relationship, and
# checks it before anything is sent to the platform:
#   - at most one cascading parent per entity (in-degree <= 1)
#   - no cascade cycles (DFS with a recursion stack)
#   - self-references, missing primary keys, suspicious shapes
# Issues are reported, never raised.
# ============================================================================

ERROR_TYPES: frozenset[IssueType] = frozenset(
    {"MULTIPLE_PARENTAL_RELATIONSHIPS", "CIRCULAR_CASCADE_DELETE", "MISSING_PRIMARY_KEY"}
)


def validate_relationships(
    relationships: Sequence[RelationshipDefinition],
    entities: Sequence[ErEntity],
    config: CompilerConfig | None = None,
) -> ValidationReport:
    """Validate generated relationships against the source entities.

    Raises EmptyDiagramError when there are neither entities nor
    relationships; every other problem is returned in the report.
    """
    if not entities and not relationships:
        raise EmptyDiagramError("Nothing to validate: the diagram has no entities or relationships")
    if config is None:
        config = CompilerConfig()

    checker = _Checker(relationships, entities, config.identifier_prefix)
    checker.check_missing_primary_keys()
    checker.check_multiple_parents()
    checker.check_cascade_cycles()
    checker.check_self_references()
    checker.check_business_logic()

    errors = tuple(i for i in checker.issues if i.type in ERROR_TYPES)
    warnings = tuple(i for i in checker.issues if i.type not in ERROR_TYPES)
    report = ValidationReport(errors=errors, warnings=warnings)
    if config.interactive_mode:
        report = ValidationReport(errors=errors, warnings=warnings, prompts=tuple(build_resolution_prompts(report)))

    for issue in errors:
        logger.warning("%s: %s", issue.type, issue.message)
    logger.info(report.summary["message"])
    return report


class _Checker:
    def __init__(
        self,
        relationships: Sequence[RelationshipDefinition],
        entities: Sequence[ErEntity],
        prefix: str,
    ) -> None:
        self.relationships = list(relationships)
        self.entities = list(entities)
        self.prefix = prefix
        self.issues: list[ValidationIssue] = []

        # Logical name -> display name for declared entities
        self.declared: dict[str, str] = {
            map_identifier(e.name, "entity", prefix).logical_name: e.display_name for e in entities
        }
        self.vertices, self.graph = self._build_cascade_graph()

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _build_cascade_graph(self) -> tuple[dict[str, Vertex], Graph]:
        vertices: dict[str, Vertex] = {name: Vertex(name) for name in self.declared}
        for rel in self.relationships:
            for name in rel.entities:
                if name not in vertices:
                    vertices[name] = Vertex(name)

        edges: list[Edge] = []
        for rel in self.relationships:
            if not _is_parental(rel):
                continue
            # Self-loops are reported as SELF_REFERENCE, not as cascade cycles
            if rel.referenced_entity == rel.referencing_entity:
                continue
            edges.append(Edge(vertices[rel.referenced_entity], vertices[rel.referencing_entity], data=rel))

        return vertices, Graph(list(vertices.values()), edges)

    def display(self, logical_name: str) -> str:
        if logical_name in self.declared:
            return self.declared[logical_name]
        stripped = logical_name.split("_", 1)[1] if "_" in logical_name else logical_name
        return format_display_name(stripped)

    def add(self, issue_type: IssueType, message: str, entity: str | None = None, **details: object) -> None:
        severity = "error" if issue_type in ERROR_TYPES else "warning"
        self.issues.append(
            ValidationIssue(type=issue_type, severity=severity, message=message, entity=entity, details=dict(details))
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_missing_primary_keys(self) -> None:
        for entity in self.entities:
            if entity.primary_key is None:
                self.add(
                    "MISSING_PRIMARY_KEY",
                    f"Entity '{entity.display_name}' has no attribute marked PK",
                    entity=entity.display_name,
                    source_entity=entity.name,
                )

    def check_multiple_parents(self) -> None:
        for name, vertex in self.vertices.items():
            incoming = vertex.e_in()
            if len(incoming) <= 1:
                continue
            parents = [self.display(e.v[0].data) for e in incoming]
            child = self.display(name)
            self.add(
                "MULTIPLE_PARENTAL_RELATIONSHIPS",
                f"Entity '{child}' has {len(incoming)} parental relationships",
                entity=child,
                parents=parents,
                relationships=[e.data.schema_name for e in incoming],
                explanation=(
                    "Only one parental relationship is allowed per entity. "
                    f"Currently: {', '.join(parents)}"
                ),
            )

    def check_cascade_cycles(self) -> None:
        for cycle in _find_cycles(self.vertices):
            names = [self.display(n) for n in cycle]
            path = " → ".join(names + names[:1])
            self.add(
                "CIRCULAR_CASCADE_DELETE",
                f"Circular cascade delete detected: {path}",
                cycle=names,
                entities=list(cycle),
                explanation="Deleting any member would cascade back to an ancestor",
            )

    def check_self_references(self) -> None:
        for rel in self.relationships:
            first, second = rel.entities
            if first != second:
                continue
            entity = self.display(first)
            self.add(
                "SELF_REFERENCE",
                f"Entity '{entity}' references itself through '{rel.name}'",
                entity=entity,
                relationship=rel.schema_name,
                parental=_is_parental(rel),
            )

    def check_business_logic(self) -> None:
        self._check_undeclared_entities()
        self._check_one_to_one()
        self._check_naming_conflicts()
        self._check_unlinked_foreign_keys()

    def _check_undeclared_entities(self) -> None:
        if not self.declared:
            return
        for rel in self.relationships:
            missing = [n for n in dict.fromkeys(rel.entities) if n not in self.declared]
            for name in missing:
                self.add(
                    "BUSINESS_LOGIC_WARNING",
                    f"Relationship '{rel.name}' references undeclared entity '{self.display(name)}'",
                    entity=self.display(name),
                    check="undeclared-entity",
                    relationship=rel.schema_name,
                )

    def _check_one_to_one(self) -> None:
        for rel in self.relationships:
            if rel.source_kind == "one-to-one":
                self.add(
                    "BUSINESS_LOGIC_WARNING",
                    f"One-to-one relationship '{rel.name}' is created as one-to-many",
                    entity=self.display(rel.entities[1]),
                    check="one-to-one",
                    relationship=rel.schema_name,
                )

    def _check_naming_conflicts(self) -> None:
        # Lower-casing and truncation can map distinct source names together
        entity_sources: dict[str, list[str]] = {}
        for entity in self.entities:
            logical_name = map_identifier(entity.name, "entity", self.prefix).logical_name
            entity_sources.setdefault(logical_name, []).append(entity.name)
        for logical_name, sources in entity_sources.items():
            if len(sources) > 1:
                self.add(
                    "BUSINESS_LOGIC_WARNING",
                    f"Entities {', '.join(sources)} share the logical name '{logical_name}'",
                    entity=self.display(logical_name),
                    check="duplicate-entity-name",
                    logical_name=logical_name,
                    sources=sources,
                )

        for entity in self.entities:
            column_sources: dict[str, list[str]] = {}
            for attr in entity.attributes:
                if attr.is_primary_key or attr.is_foreign_key or is_primary_name_clash(attr.name):
                    continue
                logical_name = map_identifier(attr.name, "attribute", self.prefix).logical_name
                column_sources.setdefault(logical_name, []).append(attr.name)
            for logical_name, sources in column_sources.items():
                if len(sources) > 1:
                    self.add(
                        "BUSINESS_LOGIC_WARNING",
                        f"Attributes {', '.join(sources)} of '{entity.display_name}' share "
                        f"the column name '{logical_name}'",
                        entity=entity.display_name,
                        check="duplicate-column-name",
                        logical_name=logical_name,
                        sources=sources,
                    )

        schema_names = Counter(rel.schema_name for rel in self.relationships)
        for schema_name, count in schema_names.items():
            if count > 1:
                self.add(
                    "BUSINESS_LOGIC_WARNING",
                    f"Duplicate relationship schema name: {schema_name}",
                    check="duplicate-schema-name",
                    relationship=schema_name,
                    count=count,
                )

        lookups = Counter(
            (rel.referencing_entity, rel.lookup_logical_name)
            for rel in self.relationships
            if isinstance(rel, OneToManyRelationship)
        )
        for (entity_name, lookup), count in lookups.items():
            if count > 1:
                self.add(
                    "BUSINESS_LOGIC_WARNING",
                    f"Duplicate lookup field name '{lookup}' in entity '{self.display(entity_name)}'",
                    entity=self.display(entity_name),
                    check="duplicate-lookup-name",
                    lookup=lookup,
                    count=count,
                )

    def _check_unlinked_foreign_keys(self) -> None:
        linked: set[str] = set()
        for rel in self.relationships:
            if isinstance(rel, ManyToManyRelationship):
                linked.update(rel.entities)
            else:
                linked.add(rel.referencing_entity)

        for entity in self.entities:
            logical_name = map_identifier(entity.name, "entity", self.prefix).logical_name
            if logical_name in linked:
                continue
            for attr in entity.attributes:
                if attr.is_foreign_key and not attr.is_primary_key:
                    self.add(
                        "BUSINESS_LOGIC_WARNING",
                        f"Foreign key '{attr.name}' on '{entity.display_name}' has no relationship",
                        entity=entity.display_name,
                        check="unlinked-foreign-key",
                        attribute=attr.name,
                    )


def _is_parental(rel: RelationshipDefinition) -> bool:
    return isinstance(rel, OneToManyRelationship) and rel.cascade.is_parental


def _find_cycles(vertices: dict[str, Vertex]) -> list[list[str]]:
    """Return each distinct cycle in the cascade graph once, in discovery order."""
    visited: set[str] = set()
    stack: list[str] = []
    on_stack: set[str] = set()
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    def visit(vertex: Vertex) -> None:
        name = vertex.data
        visited.add(name)
        stack.append(name)
        on_stack.add(name)
        for edge in vertex.e_out():
            target = edge.v[1]
            if target.data in on_stack:
                cycle = stack[stack.index(target.data):]
                key = _rotate_to_min(cycle)
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle)
            elif target.data not in visited:
                visit(target)
        stack.pop()
        on_stack.discard(name)

    for vertex in vertices.values():
        if vertex.data not in visited:
            visit(vertex)
    return cycles


def _rotate_to_min(cycle: list[str]) -> tuple[str, ...]:
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])
