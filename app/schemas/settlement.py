from pydantic import BaseModel, Field


class PieShare(BaseModel):
    pie_id: str
    claimant: str
    average: float
    percentage: float


class ClaimantShare(BaseModel):
    claimant: str
    total: float
    percentage: float


class PieFailure(BaseModel):
    """A pie the settlement pass could not settle or whose percentage was not saved."""
    pie_id: str
    reason: str


class SettlementReport(BaseModel):
    """
    Cumulative report over every settlement record in the ledger.

    Pies are listed oldest settlement first, claimants alphabetically.
    """
    pies: list[PieShare] = Field(default_factory=list)
    claimants: list[ClaimantShare] = Field(default_factory=list)
    grand_total: float = 0.0
    failures: list[PieFailure] = Field(default_factory=list)

    def to_text(self) -> str:
        lines = ["Settlement report"]
        if not self.pies:
            lines.append("No pies have been settled yet.")
        else:
            for share in self.pies:
                lines.append(
                    f"Pie {share.pie_id} ({share.claimant}): "
                    f"average {share.average:.2f}, {share.percentage:.2f}%"
                )
            lines.append("Claimants:")
            for share in self.claimants:
                lines.append(f"{share.claimant}: {share.total:.2f}, {share.percentage:.2f}%")
            lines.append(f"Grand total: {self.grand_total:.2f}")

        for failure in self.failures:
            lines.append(f"Could not settle pie {failure.pie_id}: {failure.reason}")
        return "\n".join(lines)
