from sqlmodel import Field, SQLModel


class Topic(SQLModel):
    id: str
    name: str
    description: str = ""


class Branch(SQLModel):
    id: str
    name: str
    address: str = ""
    phone: str = ""
    supported_topic_ids: list[str] = Field(default_factory=list)
