import os
import json
import datetime


class MigrationState:
    """
    Record of the remote steps already completed for one destination host

    Stored as JSON so that a failed run can pick up after the last step that
    succeeded instead of starting over. Progress recorded for a different host
    is ignored.
    """

    def __init__(self, path, host, completed_steps=None):
        self.path = path
        self.host = host
        self.completed_steps = list(completed_steps or [])

    @classmethod
    def load(cls, path, host):
        if not os.path.exists(path):
            return cls(path, host)

        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Warning: Could not read migration state {path}, starting fresh: {e}")
            return cls(path, host)

        if data.get('host') != host:
            print(f"Migration state in {path} belongs to {data.get('host')}, starting fresh")
            return cls(path, host)
        return cls(path, host, data.get('completed_steps', []))

    def is_done(self, step):
        return step in self.completed_steps

    def mark_done(self, step):
        if step not in self.completed_steps:
            self.completed_steps.append(step)
        self.save()

    def reset(self):
        self.completed_steps = []
        if os.path.exists(self.path):
            os.remove(self.path)

    def save(self):
        temp_path = f"{self.path}.tmp"
        with open(temp_path, 'w') as f:
            json.dump({
                'host': self.host,
                'completed_steps': self.completed_steps,
                'updated': str(datetime.datetime.now()),
            }, f, indent=2)
        os.replace(temp_path, self.path)
