"""Registry of the expert roles that can take part in a PRD debate."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentProfile:
    """A fixed expert persona. Color and avatar are for display only."""

    name: str
    persona: str
    color: str
    avatar: str


class AgentRegistry:
    """Registry for managing the closed set of debate roles."""

    def __init__(self):
        self._profiles: dict[str, AgentProfile] = {}
        self._register_built_in_profiles()

    def _register_built_in_profiles(self) -> None:
        """Register the built-in expert roles."""
        for profile in BUILT_IN_PROFILES:
            self.register(profile)

    def register(self, profile: AgentProfile) -> None:
        self._profiles[profile.name] = profile

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def get_profile(self, name: str) -> AgentProfile:
        """Get a profile by role name."""
        if name not in self._profiles:
            raise ValueError(
                f"Unknown agent: {name}. Available: {list(self._profiles.keys())}"
            )
        return self._profiles[name]

    def list_agents(self) -> list[str]:
        """List all known role names."""
        return list(self._profiles.keys())

    def filter_roster(self, agents: list[object], max_agents: int) -> list[str]:
        """Keep known roles in order, drop unknown names and repeats, cap the size.

        A name listed twice keeps only its first position, so each role speaks
        at most once per round. The cap applies after repeats are removed.
        """
        roster: list[str] = []
        for name in agents:
            if not isinstance(name, str) or name not in self._profiles:
                logger.debug(f"Dropping unknown agent {name!r}")
                continue
            if name in roster:
                continue
            roster.append(name)
        if len(roster) > max_agents:
            logger.info(f"Truncating roster of {len(roster)} agents to {max_agents}")
        return roster[:max_agents]


BUILT_IN_PROFILES: tuple[AgentProfile, ...] = (
    AgentProfile(
        name="UX Lead",
        persona=(
            "You champion the end user. You judge flows, onboarding, accessibility and "
            "copy, and you push back on features that add friction without clear value."
        ),
        color="#8b5cf6",
        avatar="/avatars/ux-lead.png",
    ),
    AgentProfile(
        name="Backend Engineer",
        persona=(
            "You own APIs, data models and service boundaries. You look for missing "
            "requirements on scale, consistency, failure handling and integration effort."
        ),
        color="#2563eb",
        avatar="/avatars/backend-engineer.png",
    ),
    AgentProfile(
        name="Data Scientist",
        persona=(
            "You care about what gets measured. You ask for success metrics, event "
            "tracking, experiment design and the data needed to train or evaluate models."
        ),
        color="#059669",
        avatar="/avatars/data-scientist.png",
    ),
    AgentProfile(
        name="DevOps Engineer",
        persona=(
            "You think about deployment, observability, cost of running the system and "
            "on-call burden. You flag anything that is hard to operate or roll back."
        ),
        color="#d97706",
        avatar="/avatars/devops-engineer.png",
    ),
    AgentProfile(
        name="Security Specialist",
        persona=(
            "You threat-model every feature. You look for authentication gaps, data "
            "exposure, abuse cases and compliance with security best practices."
        ),
        color="#dc2626",
        avatar="/avatars/security-specialist.png",
    ),
    AgentProfile(
        name="Finance Analyst",
        persona=(
            "You weigh cost against return. You ask about pricing, budget, build versus "
            "buy and how the product will pay for itself."
        ),
        color="#0d9488",
        avatar="/avatars/finance-analyst.png",
    ),
    AgentProfile(
        name="Legal Advisor",
        persona=(
            "You review regulatory and contractual exposure: privacy law, terms of "
            "service, licensing and liability for user-generated content."
        ),
        color="#4b5563",
        avatar="/avatars/legal-advisor.png",
    ),
    AgentProfile(
        name="Marketing Strategist",
        persona=(
            "You focus on positioning and growth. You ask who the target audience is, "
            "what differentiates the product and how it will be launched."
        ),
        color="#db2777",
        avatar="/avatars/marketing-strategist.png",
    ),
)


# Global registry instance
agent_registry = AgentRegistry()
