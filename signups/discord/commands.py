"""Slash-command definitions registered with Discord.

Option types follow the application command API: 3 = STRING, 4 = INTEGER.
Hour and day ranges are not declared here so out-of-range values reach
the bot and get a helpful reply instead of a client-side rejection.
"""

STRING = 3
INTEGER = 4

_NAME_OPTION = {
    "name": "name",
    "description": "Sign up someone else by name instead of yourself",
    "type": STRING,
    "required": False,
}

COMMANDS: list[dict] = [
    {
        "name": "add",
        "description": "Sign up for a time slot in this channel (UTC)",
        "options": [
            {
                "name": "hour",
                "description": "Hour of the day, 0-23 (e.g. 14 for 2 PM)",
                "type": INTEGER,
                "required": True,
            },
            {
                "name": "day",
                "description": "Day of the month, 1-31 (defaults to today)",
                "type": INTEGER,
                "required": False,
            },
            _NAME_OPTION,
        ],
    },
    {
        "name": "remove",
        "description": "Remove a signup (all upcoming ones if no hour is given)",
        "options": [
            {
                "name": "hour",
                "description": "Hour of the slot to remove, 0-23",
                "type": INTEGER,
                "required": False,
            },
            {
                "name": "day",
                "description": "Day of the slot to remove, 1-31",
                "type": INTEGER,
                "required": False,
            },
            _NAME_OPTION,
        ],
    },
    {
        "name": "list",
        "description": "Show the upcoming signups for this channel",
    },
    {
        "name": "next",
        "description": "Show who is up next and how long until their slot",
    },
    {
        "name": "settitle",
        "description": "Set the title for the signup list",
        "options": [
            {
                "name": "title",
                "description": "Title",
                "type": STRING,
                "required": True,
            },
        ],
    },
    {
        "name": "config",
        "description": "Configure a new list for this channel with a title (and clear all signups)",
        "options": [
            {
                "name": "title",
                "description": "Title for the list",
                "type": STRING,
                "required": True,
            },
        ],
    },
    {
        "name": "clear",
        "description": "Delete all signups and the title for this channel",
    },
]
