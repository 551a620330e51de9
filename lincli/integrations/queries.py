"""GraphQL query text used by the resolver and sync code."""

# Variables: first (Int)
TEAMS_QUERY = """
query Teams($first: Int) {
  teams(first: $first) {
    nodes {
      id
      key
      name
      issueEstimationType
    }
  }
}
"""

# Variables: filter (TeamFilter), e.g. {"key": {"eq": "ENG"}}
TEAM_BY_KEY_QUERY = """
query TeamByKey($filter: TeamFilter) {
  teams(filter: $filter) {
    nodes {
      id
      key
      name
      issueEstimationType
    }
  }
}
"""

# Variables: id (String!)
TEAM_QUERY = """
query Team($id: String!) {
  team(id: $id) {
    id
    key
    name
  }
}
"""

# Variables: id (String!) - team UUID or key
WORKFLOW_STATES_QUERY = """
query WorkflowStates($id: String!) {
  team(id: $id) {
    id
    states {
      nodes {
        id
        name
        color
        type
      }
    }
  }
}
"""

VIEWER_QUERY = """
query Viewer {
  viewer {
    id
    name
    email
  }
}
"""

# Maximum teams fetched by a full sync
TEAMS_PAGE_SIZE = 100

# Variables: first (Int)
PROJECTS_QUERY = """
query Projects($first: Int) {
  projects(first: $first) {
    nodes {
      id
      name
    }
  }
}
"""

# Maximum projects fetched by a full sync
PROJECTS_PAGE_SIZE = 250
