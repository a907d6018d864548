"""directory/ -- Profiles and the faculty/department/programme directory.

Layer rule: directory/ imports core/ and auth/ only. It does NOT import from
api/ or web/.
"""
