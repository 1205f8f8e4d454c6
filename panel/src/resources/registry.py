"""
Resource definitions and lookup.

Fields:
- users: email, first/last name, password
- posts / projects / courses: name
- course_links: link, belongs_to course
- fish: name, belongs_to user
- comments: body, belongs_to user, polymorphic belongs_to commentable (post or project)
"""

from typing import Dict, Union

from panel.src.models import Comment, Course, CourseLink, Fish, Post, Project, User
from panel.src.resources.base import Resource
from panel.src.resources.fields import attribute, belongs_to
from panel.src.resources.types import ResourceType
from panel.src.schemas.records import (
    CommentCreate,
    CourseCreate,
    CourseLinkCreate,
    FishCreate,
    PostCreate,
    ProjectCreate,
    UserCreate,
)
from panel.src.services.exceptions import NotFoundError


class UserResource(Resource):
    resource_type = ResourceType.USER
    model = User
    route_name = "users"
    search_columns = ("first_name", "last_name", "email")
    create_schema = UserCreate
    fields = (
        attribute("email", required=True),
        attribute("first_name", required=True),
        attribute("last_name", required=True),
        attribute("password", required=True),
        attribute("password_confirmation", required=True),
    )


class PostResource(Resource):
    resource_type = ResourceType.POST
    model = Post
    route_name = "posts"
    create_schema = PostCreate
    fields = (
        attribute("name", required=True),
        attribute("body"),
    )


class ProjectResource(Resource):
    resource_type = ResourceType.PROJECT
    model = Project
    route_name = "projects"
    create_schema = ProjectCreate
    fields = (
        attribute("name", required=True),
        attribute("description"),
    )


class CourseResource(Resource):
    resource_type = ResourceType.COURSE
    model = Course
    route_name = "courses"
    create_schema = CourseCreate
    fields = (
        attribute("name", required=True),
    )


class CourseLinkResource(Resource):
    resource_type = ResourceType.COURSE_LINK
    model = CourseLink
    route_name = "course_links"
    title_attribute = "link"
    search_columns = ("link",)
    create_schema = CourseLinkCreate
    fields = (
        attribute("link", required=True),
        belongs_to("course", ResourceType.COURSE),
    )


class FishResource(Resource):
    resource_type = ResourceType.FISH
    model = Fish
    route_name = "fish"
    create_schema = FishCreate
    fields = (
        attribute("name", required=True),
        belongs_to("user", ResourceType.USER),
    )


class CommentResource(Resource):
    resource_type = ResourceType.COMMENT
    model = Comment
    route_name = "comments"
    title_attribute = "body"
    search_columns = ("body",)
    create_schema = CommentCreate
    fields = (
        attribute("body", required=True),
        belongs_to("user", ResourceType.USER),
        belongs_to("commentable", types=[ResourceType.POST, ResourceType.PROJECT]),
    )


RESOURCES: Dict[ResourceType, Resource] = {
    resource.resource_type: resource
    for resource in (
        UserResource(),
        PostResource(),
        ProjectResource(),
        CourseResource(),
        CourseLinkResource(),
        FishResource(),
        CommentResource(),
    )
}

_BY_ROUTE: Dict[str, Resource] = {r.route_name: r for r in RESOURCES.values()}


def get_resource(resource_type: Union[ResourceType, str]) -> Resource:
    """
    Get the resource for a type.

    Raises:
        NotFoundError: If the type is unknown
    """
    try:
        return RESOURCES[ResourceType(resource_type)]
    except (ValueError, KeyError):
        raise NotFoundError("Resource", resource_type)


def get_resource_by_route(route_name: str) -> Resource:
    """
    Get a resource by its URL name ("course_links").

    Raises:
        NotFoundError: If no resource uses that name
    """
    resource = _BY_ROUTE.get(route_name)
    if resource is None:
        raise NotFoundError("Resource", route_name)
    return resource
