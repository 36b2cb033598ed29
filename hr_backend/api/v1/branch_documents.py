"""
Branch document APIs (licenses, permits and other branch-level paperwork).
"""

from __future__ import annotations

from ...schemas.document import BranchDocumentOut
from ...services.documents import OwnerKind
from .documents import build_document_router


router = build_document_router(
    OwnerKind.BRANCH,
    prefix="/api/v1/branch-documents",
    tag="branch-documents",
    owner_param="branch_id",
    out_schema=BranchDocumentOut,
)
