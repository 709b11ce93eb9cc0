from datetime import datetime
from typing import Optional

from docketdesk.schemas.common import ApiModel


class CustomerIn(ApiModel):
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    gstin: str = ""


class CustomerOut(CustomerIn):
    id: str
    customer_code: str
    created_at: Optional[datetime] = None


class SupplierIn(ApiModel):
    name: str
    contact_person: str = ""
    contact_number: str = ""


class SupplierOut(SupplierIn):
    id: str


class AgentIn(ApiModel):
    name: str
    contact_info: str = ""


class AgentOut(AgentIn):
    id: str
