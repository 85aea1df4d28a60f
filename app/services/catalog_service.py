from collections.abc import Iterable

from app.models.catalog import Branch, Topic


class Catalog:
    """Read-only topic/branch reference data and the branch-supports-topic relation."""

    def __init__(self, topics: Iterable[Topic], branches: Iterable[Branch]) -> None:
        self._topics = {t.id: t for t in topics}
        self._branches = {b.id: b for b in branches}

    def list_topics(self) -> list[Topic]:
        return list(self._topics.values())

    def list_branches(self, topic_id: str | None = None) -> list[Branch]:
        if topic_id is None:
            return list(self._branches.values())
        return [b for b in self._branches.values() if topic_id in b.supported_topic_ids]

    def get_topic(self, topic_id: str) -> Topic | None:
        return self._topics.get(topic_id)

    def get_branch(self, branch_id: str) -> Branch | None:
        return self._branches.get(branch_id)

    def topic_exists(self, topic_id: str) -> bool:
        return topic_id in self._topics

    def branch_exists(self, branch_id: str) -> bool:
        return branch_id in self._branches

    def branch_supports_topic(self, branch_id: str, topic_id: str) -> bool:
        branch = self._branches.get(branch_id)
        return branch is not None and topic_id in branch.supported_topic_ids


DEFAULT_TOPICS = [
    Topic(id="1", name="Personal Loans", description="Apply for personal loans, discuss rates and terms"),
    Topic(id="2", name="Credit Cards", description="Apply for credit cards or discuss existing accounts"),
    Topic(id="3", name="Business Banking", description="Open business accounts, loans, and merchant services"),
    Topic(id="4", name="Mortgage Services", description="Home loans, refinancing, and mortgage consultations"),
    Topic(id="5", name="Investment Advisory", description="Financial planning and investment consultation"),
]

DEFAULT_BRANCHES = [
    Branch(
        id="1",
        name="Downtown Main Branch",
        address="123 Main Street, Suite 100, Downtown, CA 90001",
        phone="(555) 123-4567",
        supported_topic_ids=["1", "2", "3", "4", "5"],
    ),
    Branch(
        id="2",
        name="Westside Branch",
        address="456 West Avenue, Westside, CA 90002",
        phone="(555) 234-5678",
        supported_topic_ids=["1", "2", "4"],
    ),
    Branch(
        id="3",
        name="Business District Branch",
        address="789 Commerce Blvd, Business District, CA 90003",
        phone="(555) 345-6789",
        supported_topic_ids=["2", "3", "5"],
    ),
    Branch(
        id="4",
        name="Suburban Plaza Branch",
        address="321 Plaza Drive, Suburban, CA 90004",
        phone="(555) 456-7890",
        supported_topic_ids=["1", "2", "4"],
    ),
]


def default_catalog() -> Catalog:
    return Catalog(DEFAULT_TOPICS, DEFAULT_BRANCHES)
