"""Module to define static on-demand pricing used by cost estimates.

Prices are us-east-1 list prices in USD. They are rough by nature and
only meant to give callers an order of magnitude.
"""

HOURS_PER_MONTH = 730

DEFAULT_INSTANCE_HOURLY = 0.10

INSTANCE_HOURLY = {
    "t3.nano": 0.0052,
    "t3.micro": 0.0104,
    "t3.small": 0.0208,
    "t3.medium": 0.0416,
    "t3.large": 0.0832,
    "t3.xlarge": 0.1664,
    "t3.2xlarge": 0.3328,
    "m5.large": 0.096,
    "m5.xlarge": 0.192,
    "m5.2xlarge": 0.384,
    "m6i.large": 0.096,
    "m6i.xlarge": 0.192,
    "c5.large": 0.085,
    "c5.xlarge": 0.17,
    "c6i.large": 0.085,
    "r5.large": 0.126,
    "r5.xlarge": 0.252,
    "r6i.large": 0.126,
}

NAT_GATEWAY_HOURLY = 0.045
EIP_IDLE_HOURLY = 0.005
TRANSIT_GATEWAY_ATTACHMENT_HOURLY = 0.05
# Billed per attachment, the gateway itself is free.
TRANSIT_GATEWAY_HOURLY = 0.0


def monthly(hourly: float) -> float:
    return round(hourly * HOURS_PER_MONTH, 2)