'''
Project timeline: one bar per sprint, placed by its offset and width
relative to the span from the earliest sprint start to the latest end.
'''

from services.entities import TimelineEntry


def build_timeline(sprints):
    # Place each sprint as a bar inside the span from the earliest start to the latest end
    if not sprints:
        return []
    ordered = sorted(sprints, key = lambda sprint: (sprint.start_date, sprint.id))
    earliest = ordered[0].start_date
    latest = max(sprint.end_date for sprint in ordered)
    total_days = (latest - earliest).days + 1

    entries = []
    for sprint in ordered:
        duration = (sprint.end_date - sprint.start_date).days + 1
        offset = (sprint.start_date - earliest).days
        entries.append(TimelineEntry(
            sprint_id = sprint.id,
            title = sprint.title,
            status = sprint.status,
            start_date = sprint.start_date,
            end_date = sprint.end_date,
            duration_days = duration,
            offset_days = offset,
            offset_percent = round(offset / total_days * 100, 2),
            width_percent = round(duration / total_days * 100, 2),
        ))
    return entries
