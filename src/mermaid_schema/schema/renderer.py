from __future__ import annotations

from typing import Any

from .types import (
    CascadeConfiguration,
    ColumnDefinition,
    EntityDefinition,
    GlobalChoiceSet,
    ManyToManyRelationship,
    OneToManyRelationship,
    RelationshipDefinition,
    SchemaDocument,
    TargetFieldSpec,
)

# ============================================================================
# Metadata renderer
#
# Renders a SchemaDocument as platform Web API metadata payloads
# (EntityDefinitions, Attributes, RelationshipDefinitions,
# GlobalOptionSetDefinitions). Output is plain JSON-safe dicts, in creation
# order; sending them is the caller's job.
# ============================================================================

ODATA_NAMESPACE = "Microsoft.Dynamics.CRM"


def render_schema_metadata(document: SchemaDocument, language_code: int = 1033) -> dict[str, Any]:
    """Render the whole document, keyed by creation stage."""
    return {
        "entities": [render_entity(e, language_code) for e in document.entities],
        "additionalColumns": [
            {
                "entityLogicalName": c.entity_logical_name,
                "columnMetadata": render_column(c.column, language_code),
            }
            for c in document.additional_columns
        ],
        "relationships": [render_relationship(r, language_code) for r in document.relationships],
        "globalChoiceSets": [render_choice_set(s, language_code) for s in document.global_choice_sets],
        "metadata": {"publisherPrefix": document.prefix, "source": "mermaid-erd"},
    }


def render_entity(entity: EntityDefinition, language_code: int = 1033) -> dict[str, Any]:
    return {
        "@odata.type": _odata("EntityMetadata"),
        "LogicalName": entity.logical_name,
        "SchemaName": entity.schema_name,
        "DisplayName": _label(entity.display_name, language_code),
        "DisplayCollectionName": _label(entity.display_collection_name, language_code),
        "Description": _label(entity.description, language_code),
        "OwnershipType": entity.ownership_type,
        "IsActivity": False,
        "HasNotes": False,
        "HasActivities": False,
        "Attributes": [render_column(f, language_code) for f in entity.fields],
    }


def render_column(column: ColumnDefinition, language_code: int = 1033) -> dict[str, Any]:
    spec = column.spec
    payload: dict[str, Any] = {
        "@odata.type": _odata(spec.metadata_type),
        "LogicalName": column.logical_name,
        "SchemaName": column.schema_name,
        "DisplayName": _label(column.display_name, language_code),
        "Description": _label(column.description, language_code),
        "RequiredLevel": {
            "Value": "ApplicationRequired" if column.required else "None",
            "CanBeChanged": True,
            "ManagedPropertyLogicalName": "canmodifyrequirementlevelsettings",
        },
        "AttributeType": spec.attribute_type,
        "AttributeTypeName": {"Value": spec.type_name},
    }
    if column.is_primary_name:
        payload["IsPrimaryName"] = True
    payload.update(_spec_properties(spec, language_code))
    if column.global_choice_set:
        payload["GlobalOptionSet@odata.bind"] = f"/GlobalOptionSetDefinitions(Name='{column.global_choice_set}')"
    return payload


def _spec_properties(spec: TargetFieldSpec, language_code: int) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if spec.kind in ("string", "autonumber"):
        props["FormatName"] = {"Value": spec.format}
    elif spec.kind == "memo":
        props["Format"] = spec.format
    elif spec.format is not None and spec.kind != "choice":
        props["Format"] = spec.format
    if spec.max_length is not None:
        props["MaxLength"] = spec.max_length
    if spec.auto_number_format is not None:
        props["AutoNumberFormat"] = spec.auto_number_format
    if spec.min_value is not None:
        props["MinValue"] = spec.min_value
    if spec.max_value is not None:
        props["MaxValue"] = spec.max_value
    if spec.precision is not None:
        props["Precision"] = spec.precision
    if spec.precision_source is not None:
        props["PrecisionSource"] = spec.precision_source
    if spec.max_size_kb is not None:
        props["MaxSizeInKB"] = spec.max_size_kb
    if spec.date_time_behavior is not None:
        props["DateTimeBehavior"] = {"Value": spec.date_time_behavior}
    if spec.kind == "boolean":
        false_label, true_label = spec.options
        props["OptionSet"] = {
            "TrueOption": {"Value": 1, "Label": _label(true_label, language_code)},
            "FalseOption": {"Value": 0, "Label": _label(false_label, language_code)},
        }
    return props


def render_relationship(relationship: RelationshipDefinition, language_code: int = 1033) -> dict[str, Any]:
    if isinstance(relationship, ManyToManyRelationship):
        return _render_many_to_many(relationship)
    return _render_one_to_many(relationship, language_code)


def _render_one_to_many(rel: OneToManyRelationship, language_code: int) -> dict[str, Any]:
    return {
        "@odata.type": _odata("OneToManyRelationshipMetadata"),
        "SchemaName": rel.schema_name,
        "ReferencedEntity": rel.referenced_entity,
        "ReferencingEntity": rel.referencing_entity,
        "ReferencedAttribute": rel.referenced_attribute,
        "RelationshipType": "OneToManyRelationship",
        "SecurityTypes": "Append",
        "IsHierarchical": False,
        "ReferencedEntityNavigationPropertyName": rel.referenced_navigation_property,
        "ReferencingEntityNavigationPropertyName": rel.referencing_navigation_property,
        "RelationshipBehavior": {"Value": "Parental" if rel.classification == "parental" else "Referential"},
        "CascadeConfiguration": _cascade(rel.cascade),
        "Lookup": {
            "@odata.type": _odata("LookupAttributeMetadata"),
            "AttributeType": "Lookup",
            "AttributeTypeName": {"Value": "LookupType"},
            "LogicalName": rel.lookup_logical_name,
            "SchemaName": rel.lookup_schema_name,
            "DisplayName": _label(rel.display_name, language_code),
            "RequiredLevel": {"Value": "None"},
        },
    }


def _render_many_to_many(rel: ManyToManyRelationship) -> dict[str, Any]:
    return {
        "@odata.type": _odata("ManyToManyRelationshipMetadata"),
        "SchemaName": rel.schema_name,
        "Entity1LogicalName": rel.entity1,
        "Entity2LogicalName": rel.entity2,
        "IntersectEntityName": rel.intersect_entity_name,
        "Entity1IntersectAttribute": rel.entity1_intersect_attribute,
        "Entity2IntersectAttribute": rel.entity2_intersect_attribute,
        "Entity1NavigationPropertyName": rel.entity1_navigation_property,
        "Entity2NavigationPropertyName": rel.entity2_navigation_property,
        "RelationshipType": "ManyToManyRelationship",
        "SecurityTypes": "Append",
    }


def render_choice_set(choice_set: GlobalChoiceSet, language_code: int = 1033) -> dict[str, Any]:
    return {
        "@odata.type": _odata("OptionSetMetadata"),
        "Name": choice_set.name,
        "DisplayName": _label(choice_set.display_name, language_code),
        "OptionSetType": "Picklist",
        "IsGlobal": True,
        "Options": [
            {"Value": option.value, "Label": _label(option.label, language_code)}
            for option in choice_set.options
        ],
    }


def _cascade(cascade: CascadeConfiguration) -> dict[str, str]:
    return {
        "Assign": cascade.assign,
        "Delete": cascade.delete,
        "Merge": cascade.merge,
        "Reparent": cascade.reparent,
        "Share": cascade.share,
        "Unshare": cascade.unshare,
    }


def _label(text: str, language_code: int) -> dict[str, Any]:
    return {"LocalizedLabels": [{"Label": text, "LanguageCode": language_code}]}


def _odata(type_name: str) -> str:
    return f"{ODATA_NAMESPACE}.{type_name}"
