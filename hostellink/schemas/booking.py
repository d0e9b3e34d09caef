from pydantic import BaseModel, Field
from typing import Optional

class BookingCreate(BaseModel):
    roomId: str
    phoneNumber: Optional[str] = None  # M-Pesa number; defaults to the profile phone

class CancelRequest(BaseModel):
    reason: Optional[str] = None

class DisputeRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=2000)

class ReceiptOut(BaseModel):
    id: str
    bookingId: str
    receiptNumber: str
    depositAmount: int
    platformFee: int
    totalPaid: int
    paymentMethod: str
    status: str
    issuedAt: Optional[str] = None

class BookingOut(BaseModel):
    id: str
    studentId: str
    hostelId: str
    roomId: Optional[str] = None
    depositAmount: int
    platformFee: int
    totalPaid: int
    paymentStatus: str
    escrowStatus: str
    mpesaTransactionId: Optional[str] = None
    bookedAt: Optional[str] = None
    confirmedAt: Optional[str] = None
    cancelledAt: Optional[str] = None
    cancellationReason: Optional[str] = None
    disputeReason: Optional[str] = None
    adminResolution: Optional[str] = None
    receipt: Optional[ReceiptOut] = None
