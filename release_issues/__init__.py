"""Release Issues: find GitHub issues reported after a project release.

Given a published version of a tracked project (React Native by default):
- resolves the version to its GitHub release and publish date
- searches the project's own repository and its wider ecosystem for issues
  mentioning that version, created after the release
- highlights where in each issue body the version is mentioned
"""

__version__ = "1.0.0"
