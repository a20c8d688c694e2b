# fitcoach

Building blocks for a JSON web service used by personal trainers and the
people they coach. The package holds the domain records, SQLite-backed
repositories, password and token helpers, and Flask view functions for
body and trainer profiles, trainer search, coaching requests,
trainer–trainee links and a food catalogue with a nutrition calculator.

## Installing

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## What is in the package

- `fitcoach.models` – dataclass records (`User`, `Profile`,
  `TrainerProfile`, `ChatMessage`, `FoodProduct`, `ProgressReport`,
  `TrainerRequest`, `TraineeWithDetails`, statistics and chart records and
  so on) and `to_json`, which turns records, lists and timestamps into
  JSON-ready values. `Profile.is_valid()` and `TrainerProfile.is_valid()`
  tell whether a profile has every required field filled in.
- `fitcoach.security` – `hash_password` and `check_password_hash` (bcrypt,
  cost 14); `generate_token(user_id, role)` issues an HS256 token that
  expires after two hours, and `parse_token` returns its `Claims` or raises
  `TokenError`. The signing key is read from the `JWT_SECRET` environment
  variable; set it to a value of your own.
- `fitcoach.database` – `connect(path)` opens an SQLite database with rows
  addressable by column name; `run_migrations(conn, files)` applies SQL
  files in order and raises `MigrationError` on the first failure;
  `mark_stale_users_offline(conn, max_age)` marks users not seen within
  `max_age` (15 seconds by default) as offline and returns how many.
  Lookups that must find a row raise `RecordNotFound`.
- Repositories, each built around a connection:
  `fitcoach.profiles.ProfileRepository`,
  `fitcoach.trainer_profiles.TrainerProfileRepository`,
  `fitcoach.relationships.TrainerTraineeRepository`,
  `fitcoach.messages.MessageRepository`,
  `fitcoach.trainer_requests.TrainerRequestRepository` and
  `fitcoach.progress_reports.ProgressReportRepository` (report lists, user
  and trainer statistics, weight and body-fat chart series).
- `fitcoach.web` – `require_auth` (checks an `Authorization: Bearer ...`
  header), `current_user_id`, `current_role`, `get_db`, `ApiError`,
  `add_cors_headers` and `preflight`.
- View functions:
  - `fitcoach.catalog_views` – `list_products` (optional `search` query
    argument), `calculate` (`{"items": [{"product_id": 1, "grams": 150}]}`
    gives total calories, protein, fat and carbs) and the pure
    `nutrition_totals(items, lookup)`.
  - `fitcoach.profile_views` – `get_profile`, `save_profile`,
    `check_profile`, `get_trainee_profile(trainee_id)` for a trainer reading
    an assigned trainee, `get_trainer_profile`, `save_trainer_profile`,
    `check_trainer_profile`, `get_trainer_by_id(trainer_id)`.
  - `fitcoach.trainer_views` – `search_trainers` (query `q`, at least two
    characters), `send_request`, `get_my_requests`,
    `cancel_request(request_id)`, `get_my_trainer`, `get_requests_for_me`,
    `update_request_status(request_id)` (`{"status": "approved"}` or
    `"rejected"`; approving links the trainer and the trainee),
    `assign_trainee`, `list_trainees`, `remove_trainee(trainee_id)`,
    `get_assigned_trainer`.

Roles are `trainer` and `trainee`; views limited to one role answer `403`
otherwise. Errors are raised as `ApiError` and carry a body of the form
`{"error": "..."}`, or `{"message": "Unauthorized"}` for a missing or bad
token.

## Putting an application together

The views expect a Flask application that holds the database connection
under `fitcoach.web.DB_EXTENSION` and turns `ApiError` into a response:

```python
from flask import Flask

from fitcoach import catalog_views, profile_views, trainer_views
from fitcoach.database import connect, run_migrations
from fitcoach.web import DB_EXTENSION, ApiError, add_cors_headers, preflight

conn = connect("fitcoach.db")
run_migrations(conn, ["schema.sql"])

app = Flask(__name__)
app.extensions[DB_EXTENSION] = conn
app.register_error_handler(ApiError, lambda exc: exc.to_response())
app.before_request(preflight)
app.after_request(add_cors_headers)

app.add_url_rule("/products", view_func=catalog_views.list_products)
app.add_url_rule("/calculate", view_func=catalog_views.calculate, methods=["POST"])
app.add_url_rule("/profile", view_func=profile_views.get_profile)
app.add_url_rule(
    "/trainer-requests/<request_id>/status",
    view_func=trainer_views.update_request_status,
    methods=["PUT"],
)
```

A request then authenticates with a token from `generate_token`:

```
curl localhost:5000/profile -H 'Authorization: Bearer token'
```

## What the package does not do

- It has no command and no ready-made application: there is no server to
  start, no route table, and nothing that runs `mark_stale_users_offline`
  on a timer. The application is assembled as shown above.
- It ships no database schema or migration files; `run_migrations` applies
  whatever SQL files it is given.
- It has no views for registering, logging in or reporting presence, none
  for sending or reading chat messages, and none for progress reports. The
  `MessageRepository` and `ProgressReportRepository` classes, and the
  helpers in `fitcoach.security`, can be used to build them.