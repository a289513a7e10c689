"""
# Routes Package

REST surface of the Account Service, mounted under `/v1`.

| Router | Resources |
|--------|-----------|
| `index` | `/`, `/v1` (readme) |
| `children` | `/v1/children` |
| `families` | `/v1/families`, family children association |
| `educators` | `/v1/educators`, `/v1/healthprofessionals` and their children groups |
| `applications` | `/v1/applications` |
| `institutions` | `/v1/institutions` |
| `users` | password change and removal for any user type |

Handlers only translate HTTP to service calls. Errors raised by services are mapped to status
codes by the handlers registered in `errors`.
"""
