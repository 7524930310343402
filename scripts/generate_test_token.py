#!/usr/bin/env python3
"""Generate test JWT tokens for API testing.

Usage: python scripts/generate_test_token.py PERSON_ID [teacher|student|volunteer]
"""

import sys

from forge.api.deps import issue_smoke_token
from forge.core.auth import Role

person_id = sys.argv[1] if len(sys.argv) > 1 else "teacher-test"
role = Role(sys.argv[2]) if len(sys.argv) > 2 else Role.TEACHER

print(f"{role.value.title()} token for {person_id}:\n{issue_smoke_token(person_id, role=role)}")
