"""
MJML Email Templates
Meeting and payment emails rendered with MJML for cross-client compatibility
"""

from typing import Optional

# Indigo/Slate color scheme
THEME = {
    "primary": "#4f46e5",
    "primary_dark": "#4338ca",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you have a MeetBoard account.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _meeting_time_block(scheduled_date: str, scheduled_time: str, duration: int) -> str:
    return f"""
    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="16px 0 0 0">
      📅 {scheduled_date}
    </mj-text>
    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="0 0 16px 0">
      ⏰ {scheduled_time} UTC ({duration} minutes)
    </mj-text>
    """


def meeting_request_template(
    freelancer_name: str,
    client_name: str,
    meeting_title: str,
    scheduled_date: str,
    scheduled_time: str,
    duration: int,
    dashboard_url: str,
) -> str:
    """New meeting request, sent to the freelancer"""
    content = f"""
    <mj-text>
      Hi {freelancer_name},
    </mj-text>

    <mj-text>
      <strong>{client_name}</strong> has requested a meeting with you: <strong>{meeting_title}</strong>.
    </mj-text>

    {_meeting_time_block(scheduled_date, scheduled_time, duration)}

    <mj-text>
      Confirm or decline the request from your dashboard.
    </mj-text>
    """

    return get_base_template(
        title="New Meeting Request",
        preview_text=f"{client_name} wants to meet with you",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Review Request",
    )


def meeting_confirmed_template(
    client_name: str,
    freelancer_name: str,
    meeting_title: str,
    scheduled_date: str,
    scheduled_time: str,
    duration: int,
    meeting_page_url: str,
) -> str:
    """Meeting confirmed by the freelancer, sent to the client"""
    content = f"""
    <mj-text>
      Hi {client_name},
    </mj-text>

    <mj-text>
      Great news! <strong>{freelancer_name}</strong> confirmed your meeting <strong>{meeting_title}</strong>.
    </mj-text>

    {_meeting_time_block(scheduled_date, scheduled_time, duration)}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      The meeting link becomes available one hour before the start time.
    </mj-text>
    """

    return get_base_template(
        title="Meeting Confirmed ✓",
        preview_text=f"{freelancer_name} confirmed your meeting",
        content_sections=content,
        cta_url=meeting_page_url,
        cta_label="View Meeting",
    )


def meeting_reminder_template(
    recipient_name: str,
    other_party_name: str,
    meeting_title: str,
    scheduled_time: str,
    meeting_url: str,
) -> str:
    """One-hour reminder, sent to both participants"""
    content = f"""
    <mj-text>
      Hi {recipient_name},
    </mj-text>

    <mj-text>
      Your meeting <strong>{meeting_title}</strong> with <strong>{other_party_name}</strong>
      starts in about one hour, at {scheduled_time} UTC.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Your meeting link is now active.
    </mj-text>
    """

    return get_base_template(
        title="Meeting Reminder - 1 Hour",
        preview_text=f"{meeting_title} starts soon",
        content_sections=content,
        cta_url=meeting_url,
        cta_label="Join Meeting",
    )


def client_decision_request_template(
    client_name: str,
    freelancer_name: str,
    meeting_title: str,
    decision_url: str,
) -> str:
    """Post-call prompt asking the client to approve or reject the freelancer"""
    content = f"""
    <mj-text>
      Hi {client_name},
    </mj-text>

    <mj-text>
      Your call <strong>{meeting_title}</strong> with <strong>{freelancer_name}</strong> has ended.
      Would you like to continue working together?
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Approving opens a shared meetboard for chat, files and notes.
    </mj-text>
    """

    return get_base_template(
        title="How did your call go?",
        preview_text=f"Decide whether to work with {freelancer_name}",
        content_sections=content,
        cta_url=decision_url,
        cta_label="Make a Decision",
    )


def payment_released_template(
    freelancer_name: str,
    project_title: str,
    amount: str,
    dashboard_url: str,
) -> str:
    content = f"""
    <mj-text>
      Hi {freelancer_name},
    </mj-text>

    <mj-text align="center" font-size="28px" font-weight="700" color="{THEME['success']}" padding="20px 0">
      {amount}
    </mj-text>

    <mj-text>
      Escrowed funds for <strong>{project_title}</strong> have been released to you.
    </mj-text>
    """

    return get_base_template(
        title="Payment Released! 💰",
        preview_text=f"{amount} released for {project_title}",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="View Payments",
    )
