'''
State layer behind the HTTP resources: repositories over the database,
the per-user project cache, burndown computation and access checks.
'''
