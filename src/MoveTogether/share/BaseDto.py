from pydantic import BaseModel, ConfigDict


class BaseDto(BaseModel):
    """
    所有 DTO 的基类，统一配置。
    DTO 在各组件之间传递，创建后不可修改。
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)
