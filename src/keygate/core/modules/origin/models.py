from pydantic import BaseModel, Field


class IpVariants(BaseModel):
    """Both resolution policies side by side, for diagnostics."""

    public_ip: str | None = Field(..., description="First public address, else first valid address")
    private_ip: str | None = Field(..., description="First valid address of any class")


class IpReport(BaseModel):
    """Resolved client address together with the raw proxy headers it came from."""

    ip: str = Field(..., description="Address chosen by the configured preference")
    variants: IpVariants
    peer: str | None = Field(None, description="Transport peer address")
    forwarded: str | None = None
    x_forwarded_for: str | None = None
    x_real_ip: str | None = None
    cf_connecting_ip: str | None = None
