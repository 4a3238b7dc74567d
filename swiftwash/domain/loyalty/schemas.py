"""Loyalty schemas"""

from datetime import date

from pydantic import BaseModel, Field


class RedeemRequest(BaseModel):
    pointsToRedeem: int = Field(..., gt=0)


class PointsResponse(BaseModel):
    loyaltyPoints: int
    walletBalance: float
    pointsNeeded: int
    rewardsEarned: int
    canRedeem: bool


class RedeemResponse(BaseModel):
    message: str
    pointsRedeemed: int
    rewardAmount: float
    newBalance: int
    newWalletBalance: float


class HistoryEntry(BaseModel):
    id: str
    serviceType: str
    scheduledDate: date
    price: float
    loyaltyPointsEarned: int
    status: str


class HistoryResponse(BaseModel):
    totalPoints: int
    totalWashes: int
    completedWashes: int
    bookings: list[HistoryEntry]
