"""UserProfile Domain Model

身份认证由外部身份服务负责，此处保存用于冗余显示的资料与团队成员信息。
"""

from datetime import datetime

from pydantic import BaseModel


class UserProfile(BaseModel):
    """用户资料（团队成员）"""

    user_id: str
    display_name: str = ""
    email: str = ""
    role: str = "member"
    phone: str = ""
    department: str = ""
    status: str = "active"
    created_by: str = ""
    created_at: datetime | None = None
