"""Decision process: a team vote attached to an issue.

The first valid vote opens a ballot for the whole team, posts the status
table, labels the issue and schedules the resolution job for the end of the
decision period.
"""
