from fastapi import APIRouter, Depends, Response, status

from company_service.dependencies import get_command_processor, get_current_user
from company_service.schemas.companies import CompanyCreate, CompanyOut, CompanyUpdate
from company_service.services.company_service import CompanyCommandProcessor, MutationResult

router = APIRouter(prefix="/companies", tags=["companies"])

PUBLISH_WARNING = "event publishing failed"


def _mutation_body(result: MutationResult, action: str) -> dict:
    if result.published:
        return {"message": f"Company {action} successfully", "company": result.company}
    return {
        "message": f"Company {action} successfully, but event publishing failed",
        "company": result.company,
        "warning": PUBLISH_WARNING,
    }


# 회사 생성 (JWT 필요)
@router.post("", status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    current_user: str = Depends(get_current_user),
    processor: CompanyCommandProcessor = Depends(get_command_processor),
):
    return _mutation_body(processor.create(payload), "created")


# 단일 회사 조회
@router.get("/{company_id}", response_model=CompanyOut)
def read_company(company_id: str, processor: CompanyCommandProcessor = Depends(get_command_processor)):
    return processor.get(company_id)


# 회사 정보 수정 (JWT 필요)
@router.patch("/{company_id}")
def update_company(
    company_id: str,
    payload: CompanyUpdate,
    current_user: str = Depends(get_current_user),
    processor: CompanyCommandProcessor = Depends(get_command_processor),
):
    return _mutation_body(processor.update(company_id, payload), "updated")


# 회사 삭제 (JWT 필요)
@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(
    company_id: str,
    current_user: str = Depends(get_current_user),
    processor: CompanyCommandProcessor = Depends(get_command_processor),
):
    processor.delete(company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
