"""Static safety-tip content shown to every visitor."""

SAFETY_TIPS = [
    {
        "title": "Never share your MoMo PIN",
        "body": "No network staff, agent or bank will ever ask for your PIN. Anyone who asks for it is a fraudster.",
    },
    {
        "title": "Check your balance before refunding",
        "body": "Scammers send fake 'you have received money' SMS messages and then ask for a refund. "
                "Confirm the credit in your actual MoMo balance before sending anything back.",
    },
    {
        "title": "Official messages come from official senders",
        "body": "Genuine transaction alerts come from your network's registered sender ID, not from a regular phone number.",
    },
    {
        "title": "Be wary of urgent prizes and promotions",
        "body": "If you are told you have won a promotion you never entered and must pay a fee to claim it, it is a scam.",
    },
    {
        "title": "Do not dial codes a caller gives you",
        "body": "Fraudsters ask victims to dial USSD codes that approve payments or change account settings. Hang up and call your network directly.",
    },
    {
        "title": "Search the number before you pay",
        "body": "Look up an unfamiliar MoMo number here before sending money. A number with reports against it should not be trusted.",
    },
    {
        "title": "Report fraud quickly",
        "body": "Report the number here and to your network as soon as possible. Early reports help warn others and may let the network block the account.",
    },
]
