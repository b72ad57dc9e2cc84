from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from fastapi import HTTPException

from .exceptions import ContentTreeError, PartialCascadeFailure


def paginate(items: Sequence[Any], page: int = 1, limit: int = 100) -> Tuple[List[Any], Dict[str, Any]]:
    """Slice an already-sorted list into one page

    Args:
        items: Full result list
        page: Page number, 1-based (default: 1)
        limit: Items per page (default: 100)

    Returns:
        Tuple of (items_list, pagination_info)
    """
    page = max(page, 1)
    skip = (page - 1) * limit
    total_items = len(items)
    total_pages = (total_items + limit - 1) // limit if limit > 0 else 1

    pagination_info = {
        "total": total_items,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
    }
    return list(items[skip : skip + limit]), pagination_info


def format_response(
    message: str,
    data: Optional[Union[List[Any], Dict[str, Any]]] = None,
    pagination: Optional[Dict[str, Any]] = None,
    **kwargs
) -> Dict[str, Any]:
    """Format a standardized API response

    Args:
        message: Response message
        data: Optional data to include
        pagination: Optional pagination information
        **kwargs: Additional fields to include in response

    Returns:
        Formatted response dictionary
    """
    response = {"message": message}

    if data is not None:
        response["data"] = data

    if pagination:
        response["pagination"] = pagination

    # Add any additional keyword arguments
    response.update(kwargs)

    return response


def http_error(exc: ContentTreeError) -> HTTPException:
    """Translate a service error into the matching HTTP error"""
    if isinstance(exc, PartialCascadeFailure):
        return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return HTTPException(status_code=exc.status_code, detail=exc.message)
