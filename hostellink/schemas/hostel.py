from pydantic import BaseModel, Field
from typing import List, Optional

class HostelCreate(BaseModel):
    name: str
    location: str
    plotNumber: str
    rentPerMonth: int = Field(ge=0)
    totalRooms: int = Field(ge=0)
    description: Optional[str] = None
    distanceFromGate: Optional[float] = None
    images: List[str] = []

class RoomCreate(BaseModel):
    roomNumber: str
    pricePerMonth: int = Field(gt=0)
    depositAmount: Optional[int] = None
    description: Optional[str] = None
    images: List[str] = []

class RoomUpdate(BaseModel):
    roomNumber: Optional[str] = None
    pricePerMonth: Optional[int] = Field(default=None, gt=0)
    depositAmount: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None
    images: Optional[List[str]] = None

class RoomOut(BaseModel):
    id: str
    hostelId: str
    roomNumber: str
    pricePerMonth: int
    depositAmount: int  # effective deposit (price_per_month when unset)
    isVacant: bool
    description: Optional[str] = None
    images: List[str] = []

class HostelOut(BaseModel):
    id: str
    landlordId: str
    name: str
    location: str
    description: Optional[str] = None
    distanceFromGate: Optional[float] = None
    rentPerMonth: int
    totalRooms: int
    images: List[str] = []
    isVerified: bool
    vacantRooms: int = 0
    fullyBooked: bool = False  # no vacant room left
    rooms: Optional[List[RoomOut]] = None
