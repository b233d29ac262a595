"""
Profile client - sign in, view and edit the cached user profile.
"""

from typing import Any, Dict, Optional

from storefront.client.http import ApiClient, StepResult

GUEST_PROFILE = {
    "fullName": "Guest User",
    "email": "guest@example.com",
    "phone": "0000000000",
    "address": "Not added yet",
    "dob": "N/A",
    "gender": "N/A",
    "role": "User",
    "bio": "No bio added yet.",
    "profileImage": "",
}

EDITABLE_FIELDS = ("fullName", "email", "phone", "address", "dob", "gender", "bio", "profileImage")


def initials(name: Optional[str]) -> str:
    """Avatar fallback: first letters of the first two words, or "U"."""
    parts = (name or "").split()
    if not parts:
        return "U"
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[1][0]).upper()


class ProfileClient(ApiClient):
    error_keys = ("message", "msg")

    def login(self, email: str, password: str) -> StepResult:
        result = self._call(
            "POST",
            "/api/auth/login",
            fallback="Login failed.",
            success_message="Logged in.",
            json={"email": email, "password": password},
        )
        if result.ok:
            self.session.write_token(result.data["access_token"])
            self.session.write_user(result.data["user"])
        return result

    def logout(self):
        self.session.clear()

    def load(self) -> Dict[str, Any]:
        """The cached profile, or the guest placeholder when nobody is signed in."""
        return self.session.read_user() or dict(GUEST_PROFILE)

    def fetch(self) -> StepResult:
        if not self.session.is_authenticated:
            return StepResult.blocked("Please login first!")
        result = self._call("GET", "/api/users/profile", fallback="Could not load profile.", authenticated=True)
        if result.ok:
            self.session.write_user(result.data["user"])
        return result

    def save(self, changes: Dict[str, Any]) -> StepResult:
        """Send the edit form; the server's copy of the user replaces the cache."""
        if not self.session.is_authenticated:
            return StepResult.blocked("Please login first!")

        body = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
        result = self._call(
            "PUT",
            "/api/users/profile",
            fallback="Update failed.",
            success_message="Profile updated successfully!",
            authenticated=True,
            json=body,
        )
        if result.ok:
            self.session.write_user(result.data["user"])
        return result
