# foodhub/api/deps.py
from fastapi import Header, HTTPException
from pydantic import ValidationError

from foodhub.domain.schemas import Principal


def get_principal(
    x_principal_id: str = Header(...),
    x_principal_role: str = Header(...),
) -> Principal:
    """Tozsamosc przychodzi juz uwierzytelniona od zewnetrznego providera."""
    try:
        return Principal(principal_id=x_principal_id, role=x_principal_role)
    except ValidationError:
        raise HTTPException(status_code=401, detail="Unknown principal role")
