"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, Dict, List, Optional
import uuid
from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_uuids_to_strings(item) for item in obj]
    elif hasattr(obj, '__table__'):
        return row_to_dict(obj)
    else:
        return obj


def row_to_dict(row: Any) -> Dict[str, Any]:
    """
    Column values of a SQLAlchemy model as a plain dict. Relationships are left
    out so nothing gets lazy loaded outside the session.
    """
    mapper = sa_inspect(row).mapper
    return {
        column.key: convert_uuids_to_strings(getattr(row, column.key))
        for column in mapper.column_attrs
    }


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    if hasattr(data, '__table__'):
        data = row_to_dict(data)

    clean_data = convert_uuids_to_strings(data)
    return model_class.model_validate(clean_data)


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def profile_summary(profile, *fields: str) -> Optional[Dict[str, Any]]:
    """Subset of a Profile for embedding in order payloads"""
    if profile is None:
        return None
    fields = fields or ("full_name", "email", "phone", "user_type")
    return {field: getattr(profile, field) for field in fields}


def order_to_dict(
    order,
    include_items: bool = True,
    include_payments: bool = False,
    profile_fields: tuple = (),
) -> Dict[str, Any]:
    """Convert an Order (with eagerly loaded relationships) to a response dict"""
    order_dict = row_to_dict(order)
    if include_items:
        order_dict["order_items"] = [row_to_dict(item) for item in order.order_items]
    if include_payments:
        order_dict["payments"] = [row_to_dict(payment) for payment in order.payments]
    if profile_fields:
        order_dict["profiles"] = profile_summary(order.profile, *profile_fields)
    return order_dict
