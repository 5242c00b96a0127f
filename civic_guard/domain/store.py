"""Issue/Post aggregate store - holds the current AppState and applies reducers"""
from typing import Callable, List, Optional
import structlog

from . import reducers
from .models import Issue, IssueStatus, ForumPost, Comment, User, ReportDraft
from .models.issue import IssueUpdate, IssueDetailsUpdate, ResolutionProofCreate
from .models.user import UserLogin, UserUpdate
from .models.forum import ForumPostCreate, CommentCreate
from .state import AppState

logger = structlog.get_logger()

Listener = Callable[[AppState], None]


class IssueStore:
    """
    Reactive in-memory store.

    All writes go through the reducers in `reducers.py`; listeners are called
    with the new state after every successful change. Reads go straight to
    `state`, and derived views are recomputed from it on demand (see `views.py`).
    """

    def __init__(self, state: AppState, leader_email: str = "leader@civic.com"):
        self.state = state
        self.leader_email = leader_email
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _commit(self, new_state: AppState) -> AppState:
        if new_state is self.state:
            return new_state
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    @property
    def current_user(self) -> User:
        return self.state.current_user

    # --- Issues ---

    def add_issue(self, draft: ReportDraft) -> Issue:
        self._commit(reducers.add_issue(self.state, draft))
        issue = self.state.issues[0]
        logger.info(
            "issue_created",
            issue_id=issue.id,
            source=draft.source.value,
            category=issue.category.value,
            urgency=issue.urgency.value if issue.urgency else None,
            images=len(issue.images),
        )
        return issue

    def update_issue(self, issue_id: int, changes: IssueUpdate) -> Issue:
        self._commit(reducers.update_issue(self.state, issue_id, changes))
        logger.info("issue_updated", issue_id=issue_id)
        return self.state.get_issue(issue_id)

    def delete_issue(self, issue_id: int) -> None:
        self._commit(reducers.delete_issue(self.state, issue_id))
        logger.info("issue_deleted", issue_id=issue_id)

    def vote(self, issue_id: int) -> Issue:
        already_voted = issue_id in self.state.voted_issue_ids
        self._commit(reducers.vote_issue(self.state, issue_id))
        if already_voted:
            logger.debug("duplicate_vote_ignored", issue_id=issue_id)
        return self.state.get_issue(issue_id)

    def update_status(
        self,
        issue_id: int,
        status: IssueStatus,
        resolution_proof: Optional[ResolutionProofCreate] = None,
    ) -> Issue:
        previous = self.state.get_issue(issue_id).status
        self._commit(reducers.update_status(self.state, issue_id, status, resolution_proof))
        logger.info(
            "issue_status_changed",
            issue_id=issue_id,
            from_status=previous.value,
            to_status=status.value,
            leader_id=self.current_user.id,
        )
        return self.state.get_issue(issue_id)

    def update_details(self, issue_id: int, details: IssueDetailsUpdate) -> Issue:
        self._commit(reducers.update_details(self.state, issue_id, details))
        logger.info("issue_details_changed", issue_id=issue_id, **details.model_dump(exclude_unset=True, mode="json"))
        return self.state.get_issue(issue_id)

    # --- Users ---

    def login(self, details: UserLogin) -> User:
        self._commit(reducers.login(self.state, details, self.leader_email))
        logger.info("user_logged_in", user_id=self.current_user.id, role=self.current_user.role.value)
        return self.current_user

    def update_user(self, changes: UserUpdate) -> User:
        self._commit(reducers.update_user(self.state, changes))
        return self.current_user

    # --- Forum ---

    def create_post(self, post: ForumPostCreate) -> ForumPost:
        self._commit(reducers.create_post(self.state, post))
        new_post = self.state.posts[0]
        logger.info("forum_post_created", post_id=new_post.id, author_id=new_post.author_id)
        return new_post

    def add_comment(self, post_id: int, comment: CommentCreate) -> Comment:
        self._commit(reducers.add_comment(self.state, post_id, comment))
        return self.state.comments[-1]

    def vote_comment(self, comment_id: int) -> Comment:
        self._commit(reducers.vote_comment(self.state, comment_id))
        return self.state.get_comment(comment_id)
