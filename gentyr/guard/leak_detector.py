"""
Secret Leak Detector: warns when a user prompt contains a credential.

Pasted secrets end up in the transcript on disk. This never blocks the
prompt; it only produces a warning with rotation advice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MIN_PROMPT_LENGTH = 10


@dataclass(frozen=True)
class SecretPattern:
    name: str
    pattern: re.Pattern[str]
    advice: str = ""
    # Generic shapes only count when a context word is also present
    context: re.Pattern[str] | None = None


SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    SecretPattern(
        "1Password Service Account Token",
        re.compile(r"ops_[A-Za-z0-9+/=_-]{50,}"),
        "Rotate in 1Password > Settings > Service Accounts > Regenerate.",
    ),
    SecretPattern(
        "GitHub Personal Access Token (classic)",
        re.compile(r"ghp_[A-Za-z0-9]{36,}"),
        "Revoke at github.com/settings/tokens and create a new one.",
    ),
    SecretPattern(
        "GitHub Fine-Grained Token",
        re.compile(r"github_pat_[A-Za-z0-9_]{30,}"),
        "Revoke at github.com/settings/tokens and create a new one.",
    ),
    SecretPattern(
        "Render API Key",
        re.compile(r"rnd_[A-Za-z0-9]{30,}"),
        "Regenerate at dashboard.render.com/account/api-keys.",
    ),
    SecretPattern(
        "Resend API Key",
        re.compile(r"re_[A-Za-z0-9]{20,}"),
        "Regenerate at resend.com/api-keys.",
    ),
    SecretPattern(
        "Supabase Service Role Key (or other JWT)",
        re.compile(r"eyJ[A-Za-z0-9_-]{100,}\.[A-Za-z0-9_-]{100,}\.[A-Za-z0-9_-]{40,}"),
        "If this is a service_role key, rotate in Supabase Dashboard > Project Settings > API.",
    ),
    SecretPattern(
        "Elastic API Key",
        re.compile(r"(?:^|\s)[A-Za-z0-9+/]{40,}={0,2}(?:\s|$)"),
        "Regenerate in Elastic Cloud > Deployments > Security > API Keys.",
        context=re.compile(r"elastic|kibana|cloud\.es", re.IGNORECASE),
    ),
    SecretPattern(
        "Cloudflare API Token",
        re.compile(r"[A-Za-z0-9_-]{40}(?:\s|$)"),
        "Regenerate at dash.cloudflare.com/profile/api-tokens.",
        context=re.compile(r"cloudflare|cf_", re.IGNORECASE),
    ),
    SecretPattern(
        "Codecov Upload Token",
        re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"),
        "Regenerate at app.codecov.io > your repo > Settings.",
        context=re.compile(r"codecov", re.IGNORECASE),
    ),
    SecretPattern(
        "AWS Access Key",
        re.compile(r"AKIA[0-9A-Z]{16}"),
        "Rotate in AWS IAM > Security credentials.",
    ),
    SecretPattern(
        "Private Key",
        re.compile(r"-----BEGIN (?:RSA |EC |DSA )?PRIVATE KEY-----"),
        "This private key is now exposed. Generate a new key pair immediately.",
    ),
    SecretPattern(
        "Stripe Secret Key",
        re.compile(r"sk_(?:live|test)_[A-Za-z0-9]{20,}"),
        "Rotate at dashboard.stripe.com/apikeys.",
    ),
    SecretPattern(
        "OpenAI API Key",
        re.compile(r"sk-[A-Za-z0-9]{20,}T3BlbkFJ[A-Za-z0-9]{20,}"),
        "Rotate at platform.openai.com/api-keys.",
    ),
    SecretPattern(
        "Anthropic API Key",
        re.compile(r"sk-ant-[A-Za-z0-9_-]{80,}"),
        "Rotate at console.anthropic.com/settings/keys.",
    ),
    SecretPattern(
        "Slack Bot/User Token",
        re.compile(r"xox[bporas]-[A-Za-z0-9-]{20,}"),
        "Rotate at api.slack.com/apps > your app > OAuth & Permissions.",
    ),
)


@dataclass
class LeakReport:
    detected: list[SecretPattern] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.detected)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.detected]

    def warning(self) -> str:
        """Operator-facing warning. Names the kind of secret, never the secret."""
        if not self.detected:
            return ""
        lines = [
            f"SECRET DETECTED in your message: {', '.join(self.names)}.",
            "",
            "This credential is now in the conversation transcript (stored on disk).",
            "You should rotate it after this session.",
        ]
        advice = list(dict.fromkeys(p.advice for p in self.detected if p.advice))
        if advice:
            lines.append("")
            lines.append("How to rotate:")
            lines.extend(f"  - {a}" for a in advice)
        lines.append("")
        lines.append("The message was NOT blocked and will be processed normally.")
        return "\n".join(lines)


def scan_prompt(message: str) -> LeakReport:
    """Find known secret shapes in a user prompt."""
    report = LeakReport()
    if not message or len(message) < MIN_PROMPT_LENGTH:
        return report

    for secret in SECRET_PATTERNS:
        if not secret.pattern.search(message):
            continue
        if secret.context is not None and not secret.context.search(message):
            continue
        report.detected.append(secret)
    return report
