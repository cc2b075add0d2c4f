"""
Оплата подарочными картами: отправка заявки и проверка администратором.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from rescue.api.dependencies import SettingsDep, get_submission_service
from rescue.api.schemas import StatusUpdate, SubmissionOut, SubmitResponse
from rescue.services.images import staged_upload
from rescue.services.submissions import SubmissionInput, SubmissionService

router = APIRouter(tags=["giftcards"])

ServiceDep = Annotated[SubmissionService, Depends(get_submission_service)]


@router.post("/submit-giftcard", response_model=SubmitResponse)
async def submit_giftcard(
    service: ServiceDep,
    config: SettingsDep,
    name: Annotated[Optional[str], Form()] = None,
    email: Annotated[Optional[str], Form()] = None,
    amount: Annotated[Optional[str], Form()] = None,
    note: Annotated[Optional[str], Form()] = None,
    payment_method: Annotated[Optional[str], Form(alias="paymentMethod")] = None,
    gift_card_image: Annotated[Optional[UploadFile], File(alias="giftCardImage")] = None,
):
    """
    Принимает заявку об оплате подарочной картой.

    Поля проверяются до загрузки изображения; временный файл удаляется при любом исходе.
    """
    payload = SubmissionInput.from_form(
        name=name,
        email=email,
        amount=amount,
        note=note,
        payment_method=payment_method,
    )
    async with staged_upload(gift_card_image, config, field="giftCardImage") as staged:
        submission = await service.submit(payload, staged.read_bytes(), staged.content_type)

    return SubmitResponse(
        message="Gift card submitted successfully! We will verify it shortly.",
        submission=SubmissionOut.model_validate(submission),
    )


@router.get("/giftcard-submissions", response_model=List[SubmissionOut])
async def list_giftcard_submissions(service: ServiceDep):
    """Все заявки, новые первыми (для админки)."""
    return await service.list_submissions()


@router.put("/giftcard-submissions/{submission_id}", response_model=SubmissionOut)
async def update_giftcard_submission(submission_id: str, update: StatusUpdate, service: ServiceDep):
    """Смена статуса заявки: pending -> verified | rejected."""
    return await service.update_status(submission_id, update.status)
