"""
Fixed demo and starter data: proposals seeded into an empty collection,
the engagement records every new profile starts with, and the dashboard
activity catalog.
"""

from __future__ import annotations

from shared.types import (
    Activity,
    ActivityType,
    Engagement,
    EngagementType,
    Proposal,
    ProposalEventType,
    ProposalStatus,
)

DEMO_PROPOSALS = [
    Proposal(
        id="p1",
        title="Weekly Yoga in the Park",
        event_type=ProposalEventType.SOCIAL_EVENT,
        description="A proposal for free weekly yoga sessions to promote health and wellness.",
        goals="Improve community health, foster connections.",
        resources="Yoga mats, certified instructor.",
        target_audience="All ages and fitness levels.",
        status=ProposalStatus.APPROVED,
        submitted_by="Maya Chen",
        submitted_date="2024-06-01",
    ),
    Proposal(
        id="p2",
        title="Coding Bootcamp for Teens",
        event_type=ProposalEventType.ACADEMIC_EVENT,
        description="An intensive coding bootcamp to equip teenagers with valuable tech skills.",
        goals="Provide tech education, prepare for future careers.",
        resources="Laptops, classroom space, experienced instructors.",
        target_audience="Ages 13-18.",
        status=ProposalStatus.IN_PROGRESS,
        submitted_by="Jordan Patel",
        submitted_date="2024-06-12",
    ),
    Proposal(
        id="p3",
        title="Community-wide Book Swap",
        event_type=ProposalEventType.SOCIAL_EVENT,
        description="An event for residents to exchange books and promote reading.",
        goals="Encourage reading, build a literary community.",
        resources="Collection bins, event space.",
        target_audience="All residents.",
        status=ProposalStatus.UNDER_REVIEW,
        submitted_by="Sam Rivera",
        submitted_date="2024-07-03",
    ),
    Proposal(
        id="p4",
        title="Senior Companion Program",
        event_type=ProposalEventType.SERVICE_EVENT,
        description="A program to pair volunteers with seniors for companionship and support.",
        goals="Combat loneliness among seniors, foster intergenerational bonds.",
        resources="Volunteer coordination, background checks.",
        target_audience="Seniors and volunteers.",
        status=ProposalStatus.COMPLETED,
        submitted_by="Alex Kim",
        submitted_date="2024-05-20",
    ),
    Proposal(
        id="p5",
        title="Expand Public Wi-Fi",
        event_type=ProposalEventType.COLLOQUIUM,
        description="Proposal to expand free public Wi-Fi to more parks and public spaces.",
        goals="Increase digital equity.",
        resources="Network hardware, installation services.",
        target_audience="All residents.",
        status=ProposalStatus.REJECTED,
        submitted_by="Taylor Brooks",
        submitted_date="2024-04-28",
    ),
]

STARTER_ENGAGEMENTS = [
    Engagement(
        id="e1",
        title="Neighborhood Mural Painting",
        type=EngagementType.PROJECT_CONTRIBUTION,
        date="2024-07-20",
        details="Contributed 4 hours of painting and design work.",
        points=40,
    ),
    Engagement(
        id="e2",
        title="Summer Tech Fair 2024",
        type=EngagementType.EVENT_ATTENDANCE,
        date="2024-08-15",
        details="Attended workshops on AI and Web Development.",
        points=20,
    ),
    Engagement(
        id="e3",
        title="Weekly Yoga in the Park",
        type=EngagementType.PROPOSAL_SUBMISSION,
        date="2024-06-01",
        details="Submitted the initial proposal which was later approved.",
        points=30,
    ),
    Engagement(
        id="e4",
        title="Community Garden Initiative",
        type=EngagementType.PROJECT_CONTRIBUTION,
        date="2024-05-11",
        details="Helped with planting and weekly maintenance.",
        points=25,
    ),
]

ACTIVITIES = [
    Activity(
        id="1",
        title="Community Garden Initiative",
        type=ActivityType.PROJECT,
        description="Join us in creating a beautiful community garden. No experience necessary!",
        participation=75,
        feedback_score=4.8,
        image="https://placehold.co/600x400.png",
        date="Ongoing",
        ai_hint="community garden",
    ),
    Activity(
        id="2",
        title="Summer Tech Fair 2024",
        type=ActivityType.EVENT,
        description="Explore the latest in technology with hands-on workshops and demos.",
        attendance=250,
        feedback_score=4.5,
        image="https://placehold.co/600x400.png",
        date="August 15, 2024",
        ai_hint="tech fair",
    ),
    Activity(
        id="3",
        title="Neighborhood Mural Painting",
        type=ActivityType.PROJECT,
        description="Help us paint a vibrant mural that reflects our community spirit.",
        participation=45,
        feedback_score=4.9,
        image="https://placehold.co/600x400.png",
        date="July 20, 2024",
        ai_hint="mural painting",
    ),
    Activity(
        id="4",
        title="Annual Charity Run",
        type=ActivityType.EVENT,
        description="Run for a cause! All proceeds go to local shelters.",
        attendance=500,
        feedback_score=4.7,
        image="https://placehold.co/600x400.png",
        date="September 5, 2024",
        ai_hint="charity run",
    ),
]


def starter_points() -> int:
    return sum(engagement.points for engagement in STARTER_ENGAGEMENTS)
