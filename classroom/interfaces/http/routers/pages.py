from fastapi import APIRouter, Depends

from ....domain.entities import Role
from ..authz import RequestAuth, get_request_auth
from ..schemas import HomeResp

router = APIRouter(tags=["pages"])

@router.get("/", response_model=HomeResp)
def index(auth: RequestAuth = Depends(get_request_auth)):
    # публичная страница: только показывает, какие роли сейчас вошли
    return HomeResp(signed_in={r.value: auth.is_signed_in(r) for r in Role})
