import torch
import torch.nn as nn
import torch.nn.functional as F


class ConvBlock(nn.Module):
    def __init__(self, in_channels, out_channels):
        super(ConvBlock, self).__init__()
        self.conv = nn.Conv2d(in_channels, out_channels, kernel_size=3, padding=1)
        self.bn = nn.BatchNorm2d(out_channels)
        self.pool = nn.MaxPool2d(2, 2)

    def forward(self, x):
        return self.pool(F.relu(self.bn(self.conv(x))))


class CNNBinaryClassifier(nn.Module):
    """Binary image classifier for 3x224x224 inputs scaled to [0, 1].

    Returns one probability per image, shape (batch, 1).
    """

    def __init__(self, in_channels=3, hidden_size=64, dropout=0.3):
        super(CNNBinaryClassifier, self).__init__()

        self.block1 = ConvBlock(in_channels, 32)
        self.block2 = ConvBlock(32, 64)
        self.block3 = ConvBlock(64, 128)
        self.block4 = ConvBlock(128, 128)

        self.global_pool = nn.AdaptiveAvgPool2d(1)
        self.dropout = nn.Dropout(dropout)
        self.fc1 = nn.Linear(128, hidden_size)
        self.fc = nn.Linear(hidden_size, 1)

    def forward(self, x):
        x = self.block1(x)
        x = self.block2(x)
        x = self.block3(x)
        x = self.block4(x)

        x = self.global_pool(x).flatten(1)
        x = self.dropout(F.relu(self.fc1(x)))

        return torch.sigmoid(self.fc(x))


def load_model(model_path, map_location="cpu"):
    model = CNNBinaryClassifier()
    model.load_state_dict(torch.load(model_path, map_location=map_location))
    model.eval()
    return model
